import logging
from typing import Dict, List, Optional

from attractions.store import Collections, DocumentStore
from attractions.accounts.schemas import (
    AccessLevelRecord, AgencyRecord, UserRecord, UserType
)

logger = logging.getLogger(__name__)

DEFAULT_COMPANY_DETAILS = {
    "logo": "https://potb.b-cdn.net/LakbayHub/lakbayhub-logo.png",
    "primary_color": "#1b6ec2",
    "background_color": "#f5f5f5",
    "company_address": "4/F Kassco Building, Rizal Ave. cor. Cavite St., Brgy 209, Santa Cruz, Manila",
    "company_name": "Lakbay Hub",
    "company_email": "support@lakbayhub.com",
    "company_phone": "+639123456789",
    "contact_name": "Lakbay Hub Support",
    "show_logo": "display:block;",
}

class AccountService:
    """Read access to users, agencies and access levels"""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        """Get user by ID"""
        data = await self.store.get(Collections.USERS, user_id)
        return UserRecord(**data) if data else None

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        """Get user by email"""
        users = await self.store.find(Collections.USERS, email=email)
        return UserRecord(**users[0]) if users else None

    async def get_users_by_type(self, user_type: UserType) -> List[UserRecord]:
        users = await self.store.find(Collections.USERS, type=UserType(user_type).value)
        return [UserRecord(**u) for u in users]

    async def get_users_with_access_levels(self, access_level_ids: List[str]) -> List[UserRecord]:
        users = await self.store.find_in(Collections.USERS, "access_level", access_level_ids)
        return [UserRecord(**u) for u in users]

    async def get_agency(self, agency_id: Optional[str]) -> Optional[AgencyRecord]:
        """Get agency by ID"""
        data = await self.store.get(Collections.AGENCIES, agency_id) if agency_id else None
        return AgencyRecord(**data) if data else None

    async def get_access_level(self, access_level_id: Optional[str]) -> Optional[AccessLevelRecord]:
        """Get access level by ID, None when unset or missing"""
        if not access_level_id:
            return None
        data = await self.store.get(Collections.ACCESS_LEVELS, access_level_id)
        return AccessLevelRecord(**data) if data else None

    async def get_access_levels_created_by(self, creator_id: str) -> List[AccessLevelRecord]:
        levels = await self.store.find(Collections.ACCESS_LEVELS, created_by=creator_id)
        return [AccessLevelRecord(**level) for level in levels]

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        """Replace the stored password hash"""
        updated = await self.store.update(Collections.USERS, user_id, {"password_hash": password_hash})
        return updated is not None

    async def get_parent_company_details(self, user: UserRecord) -> Dict[str, str]:
        """Branding and contact details of the company a user books under"""
        details = dict(DEFAULT_COMPANY_DETAILS)

        if user.type == UserType.SUBAGENT.value:
            if user.has_admin_marker:
                return details
            if user.id == user.agency_id:
                await self._apply_agency_details(details, user.agency_id)
            else:
                company = await self.get_user(user.parent_id) if user.parent_id else None
                if company:
                    self._apply_user_details(details, company)
        elif user.type == UserType.AGENT.value:
            self._apply_user_details(details, user)
        elif user.type in (UserType.MASTERAGENT.value, UserType.WHITELABEL.value):
            await self._apply_agency_details(details, user.agency_id)

        details["show_logo"] = "display:block;" if details.get("logo") else "display:none;"
        return details

    async def _apply_agency_details(self, details: Dict[str, str], agency_id: Optional[str]) -> None:
        agency = await self.get_agency(agency_id)
        if not agency:
            return

        if agency.brand_logo:
            details["logo"] = agency.brand_logo.replace(" ", "%20")
        details["company_address"] = ", ".join(filter(None, [
            agency.address_1, agency.address_2, agency.city_name, agency.region_name, agency.country
        ]))
        details["company_name"] = agency.company_name or details["company_name"]
        details["company_email"] = agency.email or details["company_email"]
        details["company_phone"] = agency.mobile_no or details["company_phone"]

        master_agent = await self.get_user(agency.masteragent_id) if agency.masteragent_id else None
        if master_agent:
            details["contact_name"] = master_agent.full_name

    @staticmethod
    def _apply_user_details(details: Dict[str, str], company: UserRecord) -> None:
        extra = company.model_extra or {}
        if extra.get("profile_pic"):
            details["logo"] = str(extra["profile_pic"]).replace(" ", "%20")
        details["company_address"] = ", ".join(filter(None, [
            extra.get("address_1"), extra.get("address_2"), extra.get("city_name"),
            extra.get("region_name"), extra.get("country_name"),
        ]))
        details["company_name"] = extra.get("company_name") or company.full_name
        details["company_email"] = company.email or details["company_email"]
        details["company_phone"] = extra.get("mobile_no") or details["company_phone"]
        details["contact_name"] = company.full_name
