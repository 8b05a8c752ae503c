"""Admin user provisioning.

Creates identity + profile (+ client record for clients) on behalf of an
admin caller. The identity is created first; when the profile insert fails
the identity is deleted again so no orphan login remains.

With an Idempotency-Key, progress is recorded in provisioning_requests:
  identity_created -> replay reuses that identity
  completed        -> replay returns the stored response
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from common.auth import IdentityError, IdentityProvider
from common.models import Identity, Role, ROLES
from modules.tracking import DataClient, GenerateRequest, NoRowsError, ProvisioningRequest, StoreError, WizardData

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("email", "password", "full_name", "role")
DELETE_ATTEMPTS = 3


class ProvisioningError(Exception):
    """Request failed with a given HTTP status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class NewUser:
    email: str
    password: str
    full_name: str
    role: str
    company: Optional[str] = None


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise ProvisioningError(401, "No authorization header")
    token = authorization
    if token.lower().startswith("bearer "):
        token = token[7:]
    token = token.strip()
    if not token:
        raise ProvisioningError(401, "No authorization header")
    return token


def parse_body(raw: bytes) -> NewUser:
    try:
        body = json.loads(raw or b"null")
    except ValueError:
        raise ProvisioningError(400, "Invalid JSON body") from None
    if not isinstance(body, dict) or not all(body.get(f) for f in REQUIRED_FIELDS):
        raise ProvisioningError(400, "Missing required fields")
    if body["role"] not in ROLES:
        raise ProvisioningError(400, "Invalid role")
    return NewUser(
        email=body["email"],
        password=body["password"],
        full_name=body["full_name"],
        role=body["role"],
        company=body.get("company") or None,
    )


def parse_wizard(raw: bytes) -> WizardData:
    """The wizardData object of a project generation request."""
    try:
        return GenerateRequest.model_validate_json(raw or b"null").wizard_data
    except ValidationError as e:
        error = e.errors()[0]
        where = ".".join(str(part) for part in error["loc"])
        raise ProvisioningError(400, f"Invalid wizard data: {where}: {error['msg']}") from None


class Provisioner:
    """One provisioning call against an identity provider and the data client."""

    def __init__(self, provider: IdentityProvider, client: DataClient):
        self.provider = provider
        self.client = client

    @property
    def session(self):
        return self.client.session

    # --- authorization ---

    def authorize(self, authorization: Optional[str]) -> Identity:
        token = bearer_token(authorization)
        try:
            caller = self.provider.get_user(token)
        except IdentityError as e:
            logger.warning(f"Provisioning rejected, invalid token: {e}")
            raise ProvisioningError(401, "Invalid authentication") from None

        try:
            profile = self.client.single("profiles", {"user_id": caller.id})
        except NoRowsError:
            profile = None
        if profile is None or profile.role != Role.ADMIN.value:
            logger.warning(f"Provisioning rejected, {caller.email} is not an admin")
            raise ProvisioningError(403, "Unauthorized: Admin access required")
        return caller

    # --- idempotency log ---

    def _load_request(self, key: Optional[str]) -> Optional[ProvisioningRequest]:
        if not key:
            return None
        return self.session.get(ProvisioningRequest, key)

    def _save_request(self, key: Optional[str], **values) -> None:
        if not key:
            return
        record = self.session.get(ProvisioningRequest, key)
        if record is None:
            record = ProvisioningRequest(idempotency_key=key)
            self.session.add(record)
        for name, value in values.items():
            setattr(record, name, value)
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Could not record provisioning request {key}: {e}")

    def _forget_request(self, key: Optional[str]) -> None:
        record = self._load_request(key)
        if record is None:
            return
        try:
            self.session.delete(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Could not clear provisioning request {key}: {e}")

    # --- steps ---

    def _create_identity(self, user: NewUser) -> Identity:
        try:
            return self.provider.create_user(
                email=user.email,
                password=user.password,
                email_confirm=True,
                user_metadata={
                    "full_name": user.full_name,
                    "role": user.role,
                    "company": user.company,
                },
            )
        except IdentityError as e:
            logger.error(f"Identity creation for {user.email} failed: {e}")
            raise ProvisioningError(500, f"Failed to create user: {e}") from None

    def _delete_identity(self, user_id: str) -> bool:
        for attempt in range(1, DELETE_ATTEMPTS + 1):
            try:
                self.provider.delete_user(user_id)
                return True
            except IdentityError as e:
                logger.warning(
                    f"Rollback delete of identity {user_id} failed "
                    f"(attempt {attempt}/{DELETE_ATTEMPTS}): {e}"
                )
        logger.error(f"Identity {user_id} left without profile after {DELETE_ATTEMPTS} attempts")
        return False

    def _existing_profile(self, user_id: str):
        try:
            return self.client.single("profiles", {"user_id": user_id})
        except NoRowsError:
            return None

    def _create_client_record(self, user: NewUser, identity: Identity) -> None:
        try:
            profile = self.client.single("profiles", {"user_id": identity.id})
        except StoreError as e:
            logger.error(f"Profile lookup for client record failed: {e}")
            return
        try:
            self.client.insert("clients", {
                "profile_id": profile.id,
                "name": user.full_name,
                "contact_email": user.email,
                "company": user.company or user.full_name,
            })
        except StoreError as e:
            logger.error(f"Client record creation for {user.email} failed: {e}")

    # --- entry point ---

    def provision(
        self,
        authorization: Optional[str],
        raw_body: bytes,
        idempotency_key: Optional[str] = None,
    ) -> dict:
        self.authorize(authorization)
        user = parse_body(raw_body)

        record = self._load_request(idempotency_key)
        if record is not None and record.status == "completed" and record.response:
            logger.info(f"Replaying completed provisioning request {idempotency_key}")
            return record.response

        if record is not None and record.identity_id:
            logger.info(f"Resuming provisioning request {idempotency_key} with identity {record.identity_id}")
            identity = Identity(id=record.identity_id, email=user.email)
        else:
            identity = self._create_identity(user)
            self._save_request(idempotency_key, identity_id=identity.id, status="identity_created")

        if self._existing_profile(identity.id) is None:
            try:
                self.client.insert("profiles", {
                    "user_id": identity.id,
                    "email": user.email,
                    "full_name": user.full_name,
                    "role": user.role,
                    "company": user.company if user.role == Role.CLIENT.value else None,
                })
            except StoreError as e:
                logger.error(f"Profile creation for {user.email} failed: {e}")
                if self._delete_identity(identity.id):
                    self._forget_request(idempotency_key)
                raise ProvisioningError(500, f"Failed to create profile: {e}") from None

        if user.role == Role.CLIENT.value:
            self._create_client_record(user, identity)

        response = {
            "success": True,
            "user": {
                "id": identity.id,
                "email": user.email,
                "full_name": user.full_name,
                "role": user.role,
            },
        }
        self._save_request(idempotency_key, status="completed", response=response)
        logger.info(f"Provisioned {user.role} {user.email} ({identity.id})")
        return response
