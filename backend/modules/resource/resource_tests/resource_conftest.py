# -*- coding: utf-8 -*-
"""
学校资料库测试夹具
"""
from datetime import timedelta

import pytest_asyncio

from utils.timezone import get_tehran_time
from modules.resource.resource_models import SchoolResource


@pytest_asyncio.fixture
async def sample_resources(db_session, school_users) -> dict:
    """每个学校各一条资料"""
    now = get_tehran_time()
    resources = {
        "res_a": SchoolResource(
            id="res-a", school_name=school_users["admin_a"].school_name,
            title="کتاب ریاضی پنجم", content="فصل دوم: کسرها",
            tags=["ریاضی"], added_by=school_users["admin_a"].id,
            created_at=now - timedelta(minutes=5),
        ),
        "res_b": SchoolResource(
            id="res-b", school_name=school_users["admin_b"].school_name,
            title="کتاب علوم هشتم", content="فصل اول: مواد",
            tags=["علوم"], added_by=school_users["admin_b"].id,
            created_at=now,
        ),
    }
    db_session.add_all(resources.values())
    await db_session.commit()
    return resources
