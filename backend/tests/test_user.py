"""
用户管理 API 测试
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from core.errors import ErrorCode
from core.security import verify_password
from models import User, ActivityLog
from tests.test_conftest import SCHOOL_A, SCHOOL_B, auth_headers, create_test_user


def _usernames(response) -> set:
    return {u["username"] for u in response.json()["data"]}


class TestListUsers:
    """用户列表可见性测试"""

    @pytest.mark.asyncio
    async def test_super_admin_sees_all(self, super_admin_client: AsyncClient):
        """测试超级管理员看到全部用户"""
        response = await super_admin_client.get("/api/v1/users")
        assert response.status_code == 200
        assert _usernames(response) == {"hq_admin", "admin_a", "teacher_a", "teacher_a2", "admin_b", "teacher_b"}

    @pytest.mark.asyncio
    async def test_admin_sees_own_school(self, admin_client: AsyncClient):
        """测试学校管理员只看到本校用户"""
        response = await admin_client.get("/api/v1/users")
        assert _usernames(response) == {"admin_a", "teacher_a", "teacher_a2"}

    @pytest.mark.asyncio
    async def test_teacher_sees_self(self, teacher_client: AsyncClient):
        """测试教师只看到自己"""
        response = await teacher_client.get("/api/v1/users")
        assert _usernames(response) == {"teacher_a"}

    @pytest.mark.asyncio
    async def test_no_password_hash(self, super_admin_client: AsyncClient):
        """测试响应中不包含密码"""
        response = await super_admin_client.get("/api/v1/users")
        assert all("password_hash" not in u for u in response.json()["data"])


class TestAddUser:
    """添加用户测试"""

    @pytest.mark.asyncio
    async def test_admin_adds_teacher_to_own_school(self, admin_client: AsyncClient, db_session):
        """测试学校管理员添加的教师固定属于本校"""
        response = await admin_client.post("/api/v1/users", json={
            "username": "new_teacher",
            "password": "Teach123",
            "full_name": "زهرا موسوی",
            "email": "zahra@aftab.ir",
            "school_name": SCHOOL_B,
        })
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["role"] == "teacher"
        assert data["school_name"] == SCHOOL_A
        assert data["id"].startswith("user-")

        user = (await db_session.execute(select(User).where(User.username == "new_teacher"))).scalar_one()
        assert verify_password("Teach123", user.password_hash)

        logs = (await db_session.execute(select(ActivityLog))).scalars().all()
        assert [entry.action for entry in logs] == ["ADD_USER"]
        assert "زهرا موسوی" in logs[0].details

    @pytest.mark.asyncio
    async def test_admin_cannot_add_admin(self, admin_client: AsyncClient):
        """测试学校管理员不能添加管理员"""
        response = await admin_client.post("/api/v1/users", json={
            "username": "another_admin", "password": "Admin123", "full_name": "مدیر", "role": "admin",
        })
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_super_admin_adds_school_admin(self, super_admin_client: AsyncClient):
        """测试超级管理员添加学校管理员"""
        response = await super_admin_client.post("/api/v1/users", json={
            "username": "admin_c", "password": "Admin123", "full_name": "مدیر سه",
            "role": "admin", "school_name": "دبستان آفتاب ۳",
        })
        assert response.status_code == 200
        assert response.json()["data"]["school_name"] == "دبستان آفتاب ۳"

    @pytest.mark.asyncio
    async def test_super_admin_must_give_school(self, super_admin_client: AsyncClient):
        """测试超级管理员添加用户必须指定学校"""
        response = await super_admin_client.post("/api/v1/users", json={
            "username": "no_school", "password": "Teach123", "full_name": "بی‌مدرسه",
        })
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_create_super_admin(self, super_admin_client: AsyncClient):
        """测试不能通过接口创建超级管理员"""
        response = await super_admin_client.post("/api/v1/users", json={
            "username": "hq2", "password": "Admin123", "full_name": "x",
            "role": "super_admin", "school_name": SCHOOL_A,
        })
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_teacher_cannot_add(self, teacher_client: AsyncClient):
        """测试教师不能添加用户"""
        response = await teacher_client.post("/api/v1/users", json={
            "username": "friend", "password": "Teach123", "full_name": "دوست",
        })
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_duplicate_username(self, admin_client: AsyncClient):
        """测试用户名重复"""
        response = await admin_client.post("/api/v1/users", json={
            "username": "teacher_a", "password": "Teach123", "full_name": "تکراری",
        })
        assert response.status_code == 409
        assert response.json()["code"] == ErrorCode.ACCOUNT_EXISTS

    @pytest.mark.asyncio
    async def test_duplicate_email(self, admin_client: AsyncClient):
        """测试邮箱重复（不区分大小写）"""
        response = await admin_client.post("/api/v1/users", json={
            "username": "fresh_name", "password": "Teach123", "full_name": "تکراری",
            "email": "TEACHER_A@aftab.ir",
        })
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_weak_password(self, admin_client: AsyncClient):
        """测试弱密码"""
        response = await admin_client.post("/api/v1/users", json={
            "username": "weak_user", "password": "123456", "full_name": "ضعیف",
        })
        assert response.status_code == 400


class TestDeleteUser:
    """删除用户测试"""

    @pytest.mark.asyncio
    async def test_admin_deletes_own_teacher(self, admin_client: AsyncClient, db_session):
        """测试学校管理员删除本校教师"""
        response = await admin_client.delete("/api/v1/users/user-teacher_a2")
        assert response.status_code == 200
        assert await db_session.get(User, "user-teacher_a2") is None

        logs = (await db_session.execute(select(ActivityLog))).scalars().all()
        assert [entry.action for entry in logs] == ["DELETE_USER"]

    @pytest.mark.asyncio
    async def test_admin_cannot_delete_other_school(self, admin_client: AsyncClient):
        """测试学校管理员不能删除其他学校用户"""
        response = await admin_client.delete("/api/v1/users/user-teacher_b")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_cannot_delete_admin(self, client: AsyncClient, school_users, db_session):
        """测试学校管理员不能删除其他管理员"""
        other_admin = await create_test_user(db_session, {"username": "admin_a_2", "role": "admin", "school_name": SCHOOL_A})
        response = await client.delete(
            f"/api/v1/users/{other_admin.id}", headers=auth_headers(school_users["admin_a"])
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, super_admin_client: AsyncClient):
        """测试不能删除自己"""
        response = await super_admin_client.delete("/api/v1/users/user-super")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_super_admin_deletes_admin(self, super_admin_client: AsyncClient, db_session):
        """测试超级管理员可以删除学校管理员"""
        response = await super_admin_client.delete("/api/v1/users/user-admin_b")
        assert response.status_code == 200
        assert await db_session.get(User, "user-admin_b") is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, super_admin_client: AsyncClient):
        """测试删除不存在的用户"""
        response = await super_admin_client.delete("/api/v1/users/user-missing")
        assert response.status_code == 404
        assert response.json()["code"] == ErrorCode.ACCOUNT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_teacher_cannot_delete(self, teacher_client: AsyncClient):
        """测试教师不能删除用户"""
        response = await teacher_client.delete("/api/v1/users/user-teacher_a2")
        assert response.status_code == 403
