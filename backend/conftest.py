"""
pytest 测试配置入口
这个文件是 pytest 自动识别的入口点，用于在任何测试模块加载之前设置环境变量，
并从 tests/test_conftest.py 导入所有 fixtures。
"""

import os

# 在导入任何其他模块之前设置测试环境变量
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-aftab-exam-desk")
# 测试中默认不连接远程镜像和 AI 服务，需要时由 fixture 注入模拟传输层
os.environ["REMOTE_STORE_URL"] = ""
os.environ["REMOTE_STORE_KEY"] = ""
os.environ["AI_API_KEY"] = ""

# 从 test_conftest.py 导入所有 fixtures
from tests.test_conftest import *
