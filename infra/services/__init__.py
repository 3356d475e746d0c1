"""Core services package

Bao gồm các service chính:
- JudgeClient: Gửi batch submission tới Judge0 và poll kết quả
- LanguageRegistry: Bảng ánh xạ ngôn ngữ <-> language_id của Judge0
"""
from .judge_client import JudgeClient, JudgeResult, get_judge_client
from .languages import LanguageRegistry, default_registry

__all__ = [
    'JudgeClient',
    'JudgeResult',
    'get_judge_client',
    'LanguageRegistry',
    'default_registry',
]
