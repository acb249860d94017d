"""
HTTP handlers.

Thin adapters between aiohttp requests and ReferralLedgerService calls.
Each request gets its own session and service instance.
"""

import functools
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

from aiohttp import web
from pydantic import BaseModel

from referral_ledger.api.keys import SERVICE_FACTORY_KEY, SESSION_MAKER_KEY
from referral_ledger.schemas.referral import (
    CompleteProgramRequest,
    DepositRequest,
    GenerateLinkRequest,
    PaymentRequest,
    SetActiveRequest,
    SignupRequest,
    StatusOverrideRequest,
)
from referral_ledger.services.ledger_service import ReferralLedgerService
from referral_ledger.services.referral.export import export_filename
from referral_ledger.utils.datetime_utils import utc_now
from referral_ledger.validators import require_actor

ADMIN_ACTOR_HEADER = "X-Admin-Actor"

decimal_json_loads = functools.partial(json.loads, parse_float=Decimal)


@asynccontextmanager
async def ledger_service(request: web.Request) -> AsyncIterator[ReferralLedgerService]:
    """Open a session for the request and bind a ledger service to it."""
    session_maker = request.app[SESSION_MAKER_KEY]
    factory = request.app[SERVICE_FACTORY_KEY]
    async with session_maker() as session:
        yield factory(session)


def ok(data: Any, status: int = 200) -> web.Response:
    """Success envelope."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list):
        data = [
            item.model_dump(mode="json") if isinstance(item, BaseModel) else item
            for item in data
        ]
    return web.json_response({"ok": True, "data": data}, status=status)


async def read_body(request: web.Request, model: type[BaseModel]) -> Any:
    """Parse and validate a JSON body (ValueError on bad input).

    JSON numbers are decoded as Decimal so amounts keep their exact value.
    """
    payload = await request.json(loads=decimal_json_loads) if request.can_read_body else {}
    return model.model_validate(payload)


def admin_actor(request: web.Request) -> str:
    """Acting administrator from the request header."""
    return require_actor(request.headers.get(ADMIN_ACTOR_HEADER))


def path_int(request: web.Request, name: str) -> int:
    return int(request.match_info[name])


def query_bool(request: web.Request, name: str) -> bool | None:
    raw = request.query.get(name)
    if raw is None or raw == "":
        return None
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes"):
        return True
    if lowered in ("0", "false", "no"):
        return False
    raise ValueError(f"Invalid boolean for {name}: {raw}")


def query_int(request: web.Request, name: str) -> int | None:
    raw = request.query.get(name)
    return int(raw) if raw else None


# Public routes

async def health(request: web.Request) -> web.Response:
    """Liveness probe."""
    return web.json_response({"status": "alive", "alive": True})


async def generate_link(request: web.Request) -> web.Response:
    body = await read_body(request, GenerateLinkRequest)
    async with ledger_service(request) as service:
        link = await service.generate_link(body.user_id, seed=body.seed)
    return ok(link)


async def record_signup(request: web.Request) -> web.Response:
    body = await read_body(request, SignupRequest)
    async with ledger_service(request) as service:
        signup_id = await service.record_signup(body.code, body.referred_user_id)
    return ok({"signup_id": signup_id}, status=201)


async def record_deposit(request: web.Request) -> web.Response:
    signup_id = path_int(request, "signup_id")
    body = await read_body(request, DepositRequest)
    async with ledger_service(request) as service:
        signup = await service.record_deposit(signup_id, body.amount, body.date)
    return ok(signup)


async def get_summary(request: web.Request) -> web.Response:
    async with ledger_service(request) as service:
        summary = await service.get_summary(request.match_info["user_id"])
    return ok(summary)


# Admin routes

async def record_payment(request: web.Request) -> web.Response:
    actor = admin_actor(request)
    referral_id = path_int(request, "referral_id")
    body = await read_body(request, PaymentRequest)
    async with ledger_service(request) as service:
        payment = await service.record_payment(
            referral_id,
            body.amount,
            actor=actor,
            payment_date=body.date,
            notes=body.notes,
        )
    return ok(payment, status=201)


async def set_active(request: web.Request) -> web.Response:
    actor = admin_actor(request)
    referral_id = path_int(request, "referral_id")
    body = await read_body(request, SetActiveRequest)
    async with ledger_service(request) as service:
        referral = await service.set_active(
            referral_id, body.is_active, actor=actor, reason=body.reason
        )
    return ok(referral)


async def complete_program(request: web.Request) -> web.Response:
    actor = admin_actor(request)
    referral_id = path_int(request, "referral_id")
    body = await read_body(request, CompleteProgramRequest)
    async with ledger_service(request) as service:
        referral = await service.complete_program(referral_id, actor=actor, reason=body.reason)
    return ok(referral)


async def override_status(request: web.Request) -> web.Response:
    actor = admin_actor(request)
    referral_id = path_int(request, "referral_id")
    body = await read_body(request, StatusOverrideRequest)
    async with ledger_service(request) as service:
        referral = await service.override_status(
            referral_id, body.status, actor=actor, reason=body.reason
        )
    return ok(referral)


async def list_referrals(request: web.Request) -> web.Response:
    admin_actor(request)
    async with ledger_service(request) as service:
        referrals = await service.list_referrals(
            search=request.query.get("search") or None,
            status=request.query.get("status") or None,
            is_active=query_bool(request, "is_active"),
            limit=query_int(request, "limit"),
            offset=query_int(request, "offset"),
        )
    return ok(referrals)


async def get_referral(request: web.Request) -> web.Response:
    admin_actor(request)
    async with ledger_service(request) as service:
        referral = await service.get_referral(path_int(request, "referral_id"))
    return ok(referral)


async def program_stats(request: web.Request) -> web.Response:
    admin_actor(request)
    async with ledger_service(request) as service:
        stats = await service.get_program_stats()
    return ok(stats)


async def audit_trail(request: web.Request) -> web.Response:
    admin_actor(request)
    async with ledger_service(request) as service:
        entries = await service.get_audit_trail(path_int(request, "referral_id"))
    return ok(entries)


async def export_csv(request: web.Request) -> web.Response:
    admin_actor(request)
    kind = request.match_info["kind"]
    async with ledger_service(request) as service:
        content = await service.export_csv(kind)
    return web.Response(
        text=content,
        content_type="text/csv",
        charset="utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(kind, utc_now())}"'
        },
    )
