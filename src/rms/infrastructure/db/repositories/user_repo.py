from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.application.ports.repositories import (
    AuditLogRepository,
    DuplicateKeyError,
    UserRepository,
)
from rms.domain.common.ids import AuditLogId, UserId
from rms.domain.identity.entities import AuditAction, AuditEntry, Role, User, UserStatus
from rms.infrastructure.db.models.identity import AuditLogModel, UserModel
from rms.infrastructure.db.session import get_engine
from rms.infrastructure.db.timestamps import as_utc


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, user: User) -> None:
        with Session(self._engine) as session:
            session.add(
                UserModel(
                    id=str(user.user_id),
                    username=user.username,
                    email=user.email,
                    password_hash=user.password_hash,
                    role=user.role.value,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    phone=user.phone,
                    status=user.status.value,
                    token_version=user.token_version,
                    last_login=user.last_login,
                    created_at=user.created_at,
                )
            )
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"user {user.username} already exists") from exc

    def get(self, user_id: UserId) -> User | None:
        with Session(self._engine) as session:
            model = session.get(UserModel, str(user_id))
            return self._to_domain(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        statement = select(UserModel).where(UserModel.email == email).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            return self._to_domain(model) if model else None

    def update(self, user: User) -> None:
        with Session(self._engine) as session:
            model = session.get(UserModel, str(user.user_id))
            if model is None:
                raise LookupError(f"user {user.user_id} not found")
            model.username = user.username
            model.email = user.email
            model.password_hash = user.password_hash
            model.role = user.role.value
            model.first_name = user.first_name
            model.last_name = user.last_name
            model.phone = user.phone
            model.status = user.status.value
            model.token_version = user.token_version
            model.last_login = user.last_login
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(
                    f"user {user.username} conflicts with an existing user"
                ) from exc

    def list(self, role: Role | None = None, status: UserStatus | None = None) -> list[User]:
        statement = select(UserModel).order_by(UserModel.created_at.desc(), UserModel.id)
        if role is not None:
            statement = statement.where(UserModel.role == role.value)
        if status is not None:
            statement = statement.where(UserModel.status == status.value)
        with Session(self._engine) as session:
            return [self._to_domain(model) for model in session.execute(statement).scalars()]

    def _to_domain(self, model: UserModel) -> User:
        return User(
            user_id=UserId(model.id),
            username=model.username,
            email=model.email,
            password_hash=model.password_hash,
            role=Role(model.role),
            first_name=model.first_name,
            last_name=model.last_name,
            phone=model.phone,
            status=UserStatus(model.status),
            token_version=model.token_version,
            created_at=as_utc(model.created_at),
            last_login=as_utc(model.last_login),
        )


class SqlAlchemyAuditLogRepository(AuditLogRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, entry: AuditEntry) -> None:
        with Session(self._engine) as session:
            session.add(
                AuditLogModel(
                    id=str(entry.audit_id),
                    user_id=str(entry.user_id) if entry.user_id else None,
                    action=entry.action.value,
                    success=entry.success,
                    ip_address=entry.ip_address,
                    user_agent=entry.user_agent,
                    details=entry.details,
                    created_at=entry.created_at,
                )
            )
            session.commit()

    def list(
        self,
        user_id: UserId | None,
        action: AuditAction | None,
        limit: int,
        offset: int,
    ) -> list[AuditEntry]:
        statement = select(AuditLogModel).order_by(
            AuditLogModel.created_at.desc(),
            AuditLogModel.id.desc(),
        )
        if user_id is not None:
            statement = statement.where(AuditLogModel.user_id == str(user_id))
        if action is not None:
            statement = statement.where(AuditLogModel.action == action.value)
        statement = statement.limit(limit).offset(offset)
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [
                AuditEntry(
                    audit_id=AuditLogId(model.id),
                    user_id=UserId(model.user_id) if model.user_id else None,
                    action=AuditAction(model.action),
                    success=model.success,
                    created_at=as_utc(model.created_at),
                    ip_address=model.ip_address,
                    user_agent=model.user_agent,
                    details=model.details,
                )
                for model in models
            ]
