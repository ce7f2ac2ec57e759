"""FastAPI dependencies resolving per-app resources from ``app.state``."""

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from insightvault.core.config import Settings
from insightvault.core.security import TokenCodec
from insightvault.repositories.data_records import DataRecordRepository
from insightvault.repositories.users import UserRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_database(request: Request) -> AsyncIOMotorDatabase:
    return request.app.state.database


def get_user_repository(database: AsyncIOMotorDatabase = Depends(get_database)) -> UserRepository:
    return UserRepository(database)


def get_data_repository(database: AsyncIOMotorDatabase = Depends(get_database)) -> DataRecordRepository:
    return DataRecordRepository(database)
