import asyncio
import logging
from typing import Optional, Protocol

from google.api_core.exceptions import GoogleAPIError
from google.cloud.firestore_v1.base_query import FieldFilter

from core.errors import DependencyError
from models.staff import StaffMember

logger = logging.getLogger(__name__)


class Roster(Protocol):
    async def find_by_phone(self, phone: str) -> Optional[StaffMember]: ...


def parse_allowed_offices(raw) -> frozenset:
    # Firestore profiles store this either as a list or "Head_Office, Nyankpala"
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        return frozenset(s.strip() for s in raw.split(",") if s.strip())
    return frozenset(str(s).strip() for s in raw if str(s).strip())


def staff_from_profile(profile: dict) -> StaffMember:
    """
    Build a StaffMember from a Firestore staff document.

    The "phone" field is matched exactly by FirestoreRoster, so it must be
    stored in canonical "+<digits>" form (e.g. "+233247877745").
    """
    return StaffMember(
        phone_number=profile.get("phone", ""),
        display_name=profile.get("name") or profile.get("displayName", ""),
        department=profile.get("department", ""),
        allowed_offices=parse_allowed_offices(
            profile.get("allowedOffices", profile.get("allowed_offices"))
        ),
    )


class FirestoreRoster:
    """Staff allowlist read from the Firestore "staff" collection, one doc per person."""

    def __init__(self, client=None, collection: str = "staff"):
        self._client = client
        self._collection = collection

    def _lookup_once(self, phone: str) -> Optional[StaffMember]:
        if self._client is None:
            from core.firebase import get_firestore_client

            self._client = get_firestore_client()

        query = (
            self._client.collection(self._collection)
            .where(filter=FieldFilter("phone", "==", phone))
            .limit(1)
        )
        docs = list(query.stream())
        if not docs:
            return None
        return staff_from_profile(docs[0].to_dict() or {})

    async def find_by_phone(self, phone: str) -> Optional[StaffMember]:
        try:
            staff = await asyncio.to_thread(self._lookup_once, phone)
        except GoogleAPIError as e:
            raise DependencyError(f"[ROSTER] Firestore lookup failed for {phone}: {e}")
        if staff is None:
            logger.info(f"[ROSTER] No staff profile for {phone}")
        return staff
