#!/usr/bin/env python3

import asyncio

from sqlalchemy import delete

from attractions.auth.utils import get_password_hash
from attractions.database import SessionLocal, create_tables, engine
from attractions.models import Document
from attractions.store import Collections, DocumentStore

DEMO_PASSWORD = "password123"

AGENCIES = {
    "agency_master": {"masteragent_id": "master_1", "company_name": "Island Hoppers Travel",
                      "email": "ops@islandhoppers.example", "mobile_no": "+639170000001",
                      "address_1": "12 Roxas Blvd", "city_name": "Manila", "country": "PH"},
    "sub_owner": {"masteragent_id": "master_1", "company_name": "Cebu Day Tours",
                  "email": "hello@cebudaytours.example", "city_name": "Cebu", "country": "PH"},
}

ACCESS_LEVELS = {
    # Booker needing approval for packages and attractions, sharing the parent's wallet
    "al_restricted": {"created_by": "agent_1", "isSharedWallet": True, "holiday": 2, "attractions": 2,
                      "airline": 3, "hotel": 3},
    "al_approver": {"created_by": "agent_1", "isSharedWallet": False, "holiday": 4, "attractions": 4,
                    "airline": 4, "hotel": 4},
    "al_master_approver": {"created_by": "master_1", "isSharedWallet": False, "holiday": 4, "attractions": 4},
    "al_shared": {"created_by": "master_1", "isSharedWallet": True, "holiday": 3, "attractions": 3},
}

USERS = {
    "superadmin_1": {"type": "SUPERADMIN", "first_name": "Sam", "last_name": "Reyes",
                     "email": "superadmin@lakbayhub.example", "currency": "PHP"},
    "master_1": {"type": "MASTERAGENT", "agency_id": "agency_master", "first_name": "Mara",
                 "last_name": "Santos", "email": "master@islandhoppers.example", "currency": "PHP"},
    "agent_1": {"type": "AGENT", "agency_id": "agency_master", "first_name": "Andy",
                "last_name": "Cruz", "email": "agent@islandhoppers.example", "currency": "PHP"},
    "approver_1": {"type": "SUBAGENT", "agency_id": "agency_master", "parent_id": "agent_1",
                   "access_level": "al_approver", "first_name": "Pia", "last_name": "Lim",
                   "email": "approver@islandhoppers.example", "currency": "PHP"},
    "booker_1": {"type": "SUBAGENT", "agency_id": "agency_master", "parent_id": "agent_1",
                 "access_level": "al_restricted", "first_name": "Ben", "last_name": "Go",
                 "email": "booker@islandhoppers.example", "currency": "PHP"},
    "sub_owner": {"type": "SUBAGENT", "agency_id": "sub_owner", "access_level": "al_shared",
                  "first_name": "Cora", "last_name": "Tan", "email": "owner@cebudaytours.example",
                  "currency": "PHP"},
}

BALANCES = {
    "master_1": 250000.0,
    "agent_1": 50000.0,
    "sub_owner": 0.0,
}

FUNDS_ON_HOLD = {
    "hold_agent_1": {"userId": "agent_1", "amount": 5000.0, "currency": "PHP", "reason": "pending hotel booking"},
    "hold_master_1": {"userId": "master_1", "amount": 120.0, "currency": "USD", "reason": "pending flight booking"},
}


async def create_seed_data():
    store = DocumentStore(SessionLocal)

    print("🚀 Creating seed data for the attractions reseller API...")
    await create_tables(engine)

    # Clear existing data
    print("Clearing existing data...")
    async with SessionLocal() as session:
        async with session.begin():
            await session.execute(delete(Document))

    print("Creating agencies...")
    for key, data in AGENCIES.items():
        await store.set(Collections.AGENCIES, key, data)

    print("Creating access levels...")
    for key, data in ACCESS_LEVELS.items():
        await store.set(Collections.ACCESS_LEVELS, key, data)

    print("Creating users...")
    password_hash = get_password_hash(DEMO_PASSWORD)
    for key, data in USERS.items():
        await store.set(Collections.USERS, key, {**data, "status": "active", "password_hash": password_hash})

    print("Creating wallet balances...")
    for key, amount in BALANCES.items():
        await store.set(Collections.USER_BALANCE, key, {
            "total": {"amount": amount, "currency": "PHP"},
            "count": 0,
            "last5": [],
        })

    print("Creating funds on hold...")
    for key, data in FUNDS_ON_HOLD.items():
        await store.set(Collections.USER_FUNDS_ON_HOLD, key, data)

    print("✅ Successfully created seed data!")
    print("Created:")
    print(f"  - {len(AGENCIES)} agencies")
    print(f"  - {len(ACCESS_LEVELS)} access levels")
    print(f"  - {len(USERS)} users (password: {DEMO_PASSWORD})")
    print(f"  - {len(BALANCES)} wallet balances")
    print(f"  - {len(FUNDS_ON_HOLD)} funds on hold")


async def main():
    try:
        await create_seed_data()
    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        raise
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
