"""AgenticOS - Repositories

实体仓储：每个写操作确认后发布一次变更通知
"""
from agenticos.repositories.base import (
    AuthenticationError,
    DuplicateError,
    NotFoundError,
    RepositoryError,
)
from agenticos.repositories.board_repository import BoardRepository, TrackerRepository
from agenticos.repositories.data_bag_repository import DataBagRepository
from agenticos.repositories.domain_repository import DomainRepository
from agenticos.repositories.project_repository import ProjectRepository
from agenticos.repositories.requirement_repository import RequirementRepository
from agenticos.repositories.spec_repository import GeneratedSpecRepository
from agenticos.repositories.testcase_repository import TestCaseRepository
from agenticos.repositories.user_repository import UserRepository

__all__ = [
    "AuthenticationError",
    "BoardRepository",
    "DataBagRepository",
    "DomainRepository",
    "DuplicateError",
    "GeneratedSpecRepository",
    "NotFoundError",
    "ProjectRepository",
    "RepositoryError",
    "RequirementRepository",
    "TestCaseRepository",
    "TrackerRepository",
    "UserRepository",
]
