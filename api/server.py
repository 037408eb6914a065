"""
Hector Mint API Server - FastAPI Backend

Endpoints:
- GET  /health            Heartbeat
- GET  /wallet            Wallet state + short address
- POST /wallet/connect    Connect the configured wallet
- POST /wallet/disconnect Disconnect it
- GET  /mint              Mint page state (view, inputs, balances, submit button)
- POST /mint/view         Switch between mint and redeem
- POST /mint/input        Type an amount into the selling field
- POST /mint/submit       Press the submit button (approve / mint / redeem)
- POST /mint/disapprove   Revoke the minter's allowance for the selling token
- POST /mint/refresh      Re-read both balances now

The flow's trackers poll in the background; every GET reflects the latest
published values.
"""

import os
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from core.mint_flow import MintFlow, MintView, SubmitUnavailable
from core.units import short_address
from core.wallet import WalletSession

logger = logging.getLogger("hector.api")


# ============================================================
# MODELS
# ============================================================

class WalletResponse(BaseModel):
    state: str
    address: str = ""
    display: str = ""


class ViewRequest(BaseModel):
    view: MintView


class InputRequest(BaseModel):
    amount: str = Field("", max_length=100)


class SubmitButtonModel(BaseModel):
    label: str
    enabled: bool


class SideModel(BaseModel):
    symbol: str
    input: str
    balance: str
    allowance: str


class BuyingModel(BaseModel):
    symbol: str
    display: str


class MintStatusResponse(BaseModel):
    view: str
    wallet_state: str
    selling: SideModel
    buying: BuyingModel
    balances: dict[str, str]
    submit: SubmitButtonModel


class ActionResponse(BaseModel):
    ok: bool = True
    action: str
    tx_hash: Optional[str] = None
    explorer_url: Optional[str] = None


# ============================================================
# SERVER FACTORY
# ============================================================

def create_app(session: WalletSession, flow: MintFlow, explorer_url_fn=None) -> FastAPI:
    """
    Create FastAPI app wired to the wallet session and mint flow.

    The caller owns the flow lifecycle (flow.start() / flow.close() in the
    lifespan); see main.py.
    explorer_url_fn: fn(tx_hash) -> str, optional link for receipts
    """
    app = FastAPI(
        title="Hector Finance - Mint",
        description="Mint Tor with Dai, redeem Tor to Dai.",
        version="0.1.0",
    )

    # CORS: allow all in dev, restrict in production via CORS_ORIGINS env var
    cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _wallet_response() -> WalletResponse:
        wallet = session.wallet
        if not wallet.is_connected:
            return WalletResponse(state=wallet.state.value)
        return WalletResponse(
            state=wallet.state.value,
            address=wallet.address,
            display=short_address(wallet.address),
        )

    def _action_response(action: str, result) -> ActionResponse:
        if not result.is_ok:
            raise HTTPException(502, f"{action} failed: {result.reason}")
        tx_hash = getattr(result.value, "tx_hash", None)
        return ActionResponse(
            action=action,
            tx_hash=tx_hash,
            explorer_url=explorer_url_fn(tx_hash) if tx_hash and explorer_url_fn else None,
        )

    # ============================================================
    # ROUTES
    # ============================================================

    @app.get("/health")
    async def health():
        return {"status": "ok", "wallet": session.wallet.state.value}

    @app.get("/wallet", response_model=WalletResponse)
    async def get_wallet():
        return _wallet_response()

    @app.post("/wallet/connect", response_model=WalletResponse)
    async def connect_wallet():
        try:
            session.connect()
        except ValueError as e:
            raise HTTPException(409, str(e))
        return _wallet_response()

    @app.post("/wallet/disconnect", response_model=WalletResponse)
    async def disconnect_wallet():
        session.disconnect()
        return _wallet_response()

    @app.get("/mint", response_model=MintStatusResponse)
    async def get_mint():
        return flow.get_status()

    @app.post("/mint/view", response_model=MintStatusResponse)
    async def switch_view(req: ViewRequest):
        flow.switch_view(req.view)
        return flow.get_status()

    @app.post("/mint/input", response_model=MintStatusResponse)
    async def set_input(req: InputRequest):
        if not flow.set_input(req.amount):
            raise HTTPException(422, f"invalid amount: {req.amount!r}")
        return flow.get_status()

    @app.post("/mint/submit", response_model=ActionResponse)
    async def submit():
        label = flow.submit_button().label
        try:
            result = await flow.submit()
        except SubmitUnavailable as e:
            raise HTTPException(409, f"submit unavailable: {e}")
        return _action_response(label.lower(), result)

    @app.post("/mint/disapprove", response_model=ActionResponse)
    async def disapprove():
        try:
            result = await flow.disapprove()
        except SubmitUnavailable as e:
            raise HTTPException(409, f"disapprove unavailable: {e}")
        return _action_response("disapprove", result)

    @app.post("/mint/refresh", response_model=MintStatusResponse)
    async def refresh():
        flow.refresh()
        return flow.get_status()

    return app
