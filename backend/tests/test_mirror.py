"""
远程镜像与存储适配器测试
"""
import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select

from core.database import commit, rollback
from core.accounts import user_repository, user_to_remote, user_from_remote
from core.mirror import RemoteMirror, RemoteStoreError, get_remote_mirror, set_remote_mirror
from core.security import verify_password
from models import User
from modules.exam.exam_models import Exam
from modules.exam.exam_services import exam_repository
from tests.test_conftest import SCHOOL_A, TEST_PASSWORD, TEST_PASSWORD_HASH, auth_headers


def _mirror(handler) -> RemoteMirror:
    return RemoteMirror("https://remote.test/", "service-key", transport=httpx.MockTransport(handler))


class TestRemoteMirror:
    """PostgREST 客户端测试"""

    @pytest.mark.asyncio
    async def test_disabled(self):
        """测试未配置时不发请求"""
        mirror = RemoteMirror(None, None)
        assert mirror.enabled is False
        assert mirror.status.enabled is False
        assert await mirror.upsert("exams", {"id": "exam-1"}) is False
        assert await mirror.select_all("exams") == []

    @pytest.mark.asyncio
    async def test_upsert_request(self):
        """测试 upsert 请求格式"""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201)

        mirror = _mirror(handler)
        assert await mirror.upsert("exams", {"id": "exam-1", "title": "آزمون"}) is True

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://remote.test/rest/v1/exams"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"
        assert "resolution=merge-duplicates" in request.headers["prefer"]
        assert mirror.status.writes == 1
        assert mirror.status.last_success_at is not None

    @pytest.mark.asyncio
    async def test_insert_and_delete_requests(self):
        """测试 insert 与 delete 请求格式"""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201 if request.method == "POST" else 204)

        mirror = _mirror(handler)
        await mirror.insert("activity_logs", {"id": "1"})
        await mirror.delete("exams", "exam-1")

        assert "merge-duplicates" not in seen[0].headers["prefer"]
        assert seen[1].method == "DELETE"
        assert seen[1].url.params["id"] == "eq.exam-1"

    @pytest.mark.asyncio
    async def test_failure_recorded(self):
        """测试失败只记录状态，不抛出异常"""
        mirror = _mirror(lambda request: httpx.Response(500, text="boom"))
        assert await mirror.upsert("exams", {"id": "exam-1"}) is False
        assert mirror.status.failures == 1
        assert "HTTP 500" in mirror.status.last_error
        assert mirror.status.to_dict()["last_error_at"] is not None

    @pytest.mark.asyncio
    async def test_network_error_recorded(self):
        """测试网络错误"""
        def handler(request):
            raise httpx.ConnectError("connection refused")

        mirror = _mirror(handler)
        assert await mirror.delete("exams", "exam-1") is False
        assert mirror.status.failures == 1

    @pytest.mark.asyncio
    async def test_select_all(self):
        """测试读取整表"""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[{"id": "exam-1"}])

        rows = await _mirror(handler).select_all("exams")
        assert rows == [{"id": "exam-1"}]
        assert seen[0].url.params["select"] == "*"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(503),
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json={"id": "exam-1"}),
    ])
    async def test_select_all_errors(self, response):
        """测试读取失败抛出 RemoteStoreError"""
        mirror = _mirror(lambda request: response)
        with pytest.raises(RemoteStoreError):
            await mirror.select_all("exams")

    def test_singleton_from_settings(self):
        """测试按配置创建的单例（测试环境未配置远程）"""
        set_remote_mirror(None)
        try:
            mirror = get_remote_mirror()
            assert mirror is get_remote_mirror()
            assert mirror.enabled is False
        finally:
            set_remote_mirror(None)


class TestWriteThrough:
    """写穿透测试"""

    @pytest.mark.asyncio
    async def test_user_lifecycle_mirrored(self, admin_client: AsyncClient, remote_store):
        """测试添加和删除用户同步到远程"""
        response = await admin_client.post("/api/v1/users", json={
            "username": "mirror_teacher", "password": "Teach123", "full_name": "معلم",
        })
        user_id = response.json()["data"]["id"]

        record = remote_store.tables["users"][user_id]
        assert record["schoolName"] == SCHOOL_A
        assert record["passwordHash"].startswith("$2")
        assert "password" not in record

        # 操作日志只追加
        logs = remote_store.tables["activity_logs"]
        assert [row["action"] for row in logs.values()] == ["ADD_USER"]

        await admin_client.delete(f"/api/v1/users/{user_id}")
        assert user_id not in remote_store.tables["users"]

    @pytest.mark.asyncio
    async def test_local_write_survives_remote_failure(
        self, admin_client: AsyncClient, remote_store, db_session
    ):
        """测试远程不可用时本地仍然保存"""
        remote_store.fail = True
        response = await admin_client.post("/api/v1/users", json={
            "username": "offline_teacher", "password": "Teach123", "full_name": "معلم",
        })
        assert response.status_code == 200

        user = (await db_session.execute(select(User).where(User.username == "offline_teacher"))).scalar_one()
        assert user.school_name == SCHOOL_A
        assert get_remote_mirror().status.failures >= 1

        response = await admin_client.get("/health")
        mirror_health = response.json()["components"]["remote_mirror"]
        assert mirror_health["status"] == "degraded"
        assert response.json()["status"] == "degraded"


class TestMirrorAfterCommit:
    """远程写入只在本地提交成功后发送"""

    @staticmethod
    def _user(user_id: str) -> User:
        return User(
            id=user_id, username=user_id, password_hash=TEST_PASSWORD_HASH,
            full_name="معلم", role="teacher", school_name=SCHOOL_A,
        )

    @pytest.mark.asyncio
    async def test_sent_after_commit(self, db_session, remote_store):
        """测试保存后未提交时远程没有记录"""
        await user_repository.save(db_session, self._user("user-queued"))
        assert "user-queued" not in remote_store.tables.get("users", {})

        await commit(db_session)
        assert remote_store.tables["users"]["user-queued"]["schoolName"] == SCHOOL_A

    @pytest.mark.asyncio
    async def test_rollback_discards(self, db_session, remote_store):
        """测试回滚后登记的远程写入被丢弃"""
        await user_repository.save(db_session, self._user("user-dropped"))
        await rollback(db_session)
        await commit(db_session)

        assert await db_session.get(User, "user-dropped") is None
        assert remote_store.requests == []

    @pytest.mark.asyncio
    async def test_failed_request_not_mirrored(self, db_session, school_users, remote_store, mock_ai, monkeypatch):
        """测试请求在保存试卷后失败时远程不保留该试卷"""
        from main import app

        async def broken(*args, **kwargs):
            raise RuntimeError("activity log unavailable")

        monkeypatch.setattr("modules.exam.exam_router.record_activity", broken)

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.post(
                "/api/v1/exams/generate",
                json={"topic": "کسرها", "grade_level": "پنجم", "difficulty": "medium"},
                headers=auth_headers(school_users["teacher_a"]),
            )

        assert response.status_code == 500
        assert remote_store.tables.get("exams", {}) == {}
        assert remote_store.requests == []


class TestPull:
    """启动拉取测试"""

    @pytest.mark.asyncio
    async def test_pull_users(self, db_session, school_users, remote_store):
        """测试拉取用户：旧版明文密码加密，冲突与损坏记录跳过"""
        existing = user_to_remote(school_users["admin_b"])
        existing["fullName"] = "نام جدید از ابر"
        remote_store.tables["users"] = {
            "user-legacy": {
                "id": "user-legacy", "username": "legacy_teacher", "password": "Old1234",
                "fullName": "معلم قدیمی", "role": "teacher", "schoolName": SCHOOL_A,
                "createdAt": 1704067200000,
            },
            "user-clash": {
                "id": "user-clash", "username": "teacher_a", "passwordHash": "$2b$12$x",
                "fullName": "تکراری", "role": "teacher", "schoolName": SCHOOL_A,
            },
            "user-broken": {"id": "user-broken", "fullName": "بدون نام کاربری", "password": "x1"},
            "user-nopass": {"id": "user-nopass", "username": "nopass"},
            existing["id"]: existing,
        }

        imported = await user_repository.pull_from_remote(db_session)
        assert imported == 2

        legacy = await db_session.get(User, "user-legacy")
        assert legacy.password_hash != "Old1234"
        assert verify_password("Old1234", legacy.password_hash)

        updated = await db_session.get(User, school_users["admin_b"].id)
        assert updated.full_name == "نام جدید از ابر"
        assert verify_password(TEST_PASSWORD, updated.password_hash)

        teacher = (await db_session.execute(select(User).where(User.username == "teacher_a"))).scalar_one()
        assert teacher.id == "user-teacher_a"
        assert await db_session.get(User, "user-clash") is None

    @pytest.mark.asyncio
    async def test_pull_exams(self, db_session, remote_store):
        """测试拉取试卷"""
        remote_store.tables["exams"] = {
            "exam-remote": {
                "id": "exam-remote", "userId": "user-x", "authorName": "معلم", "schoolName": SCHOOL_A,
                "title": "آزمون ابری", "topic": "جبر", "gradeLevel": "نهم", "difficulty": "hard",
                "createdAt": 1704067200000, "rawContent": "{}",
                "questions": [{
                    "id": "q-1", "type": "fill_in_blank",
                    "segments": [{"type": "math", "content": "x + 1 = 3"}],
                    "questionText": "x + 1 = 3", "points": 1,
                }],
            }
        }
        assert await exam_repository.pull_from_remote(db_session) == 1

        exam = await db_session.get(Exam, "exam-remote")
        assert exam.difficulty == "hard"
        assert exam.questions[0]["question_text"] == "x + 1 = 3"

    @pytest.mark.asyncio
    async def test_pull_remote_unavailable(self, db_session, school_users, remote_store):
        """测试远程不可用时保留本地数据"""
        remote_store.fail = True
        assert await user_repository.pull_from_remote(db_session) == 0
        users = (await db_session.execute(select(User))).scalars().all()
        assert len(users) == 6

    @pytest.mark.asyncio
    async def test_pull_disabled(self, db_session):
        """测试未配置远程时不拉取"""
        assert await user_repository.pull_from_remote(db_session) == 0


class TestUserRemoteFormat:
    """用户远程格式测试"""

    def test_missing_password_rejected(self):
        with pytest.raises(ValueError):
            user_from_remote({"id": "user-1", "username": "x"})

    def test_round_trip(self):
        user = user_from_remote({
            "id": "user-1", "username": "x", "passwordHash": "$2b$12$abc",
            "fullName": "X", "role": "admin", "schoolName": SCHOOL_A, "createdAt": 1704067200000,
        })
        record = user_to_remote(user)
        assert record["passwordHash"] == "$2b$12$abc"
        assert record["role"] == "admin"
        assert record["createdAt"] == 1704067200000
