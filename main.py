"""
Hector Mint - main entry point

Loads config, wires the wallet session, ledger and mint flow, starts the server.
One file to understand how everything connects.

Usage:
    python main.py              # Start the mint service
    uvicorn main:app            # Or via uvicorn

Environment variables:
    FANTOM_RPC_URL        JSON-RPC endpoint (default: public Fantom RPC)
    WALLET_PRIVATE_KEY    Signing key; without it the wallet stays NO_WALLET
    TOR_MINTER_ADDRESS    Minter contract (spender for Dai and Tor)
    BLOCK_TIME_SECONDS    Chain block time; polling cadence derives from it
    CORS_ORIGINS          Comma-separated CORS origins (default: *)
    LOG_LEVEL             Logging level (default: INFO)
    HOST / PORT           Server bind (default: 0.0.0.0:8000)
    DEV                   "1"/"true" enables reload
"""

import os
import re
import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv

# ============================================================
# BOOTSTRAP
# ============================================================

load_dotenv()

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


class _SecretMaskingFilter(logging.Filter):
    """Redact 64-char hex strings (private keys) from all log output."""
    _PATTERN = re.compile(r'(?<![0-9a-fA-F])([0-9a-fA-F]{64})(?![0-9a-fA-F])')

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = self._PATTERN.sub('[REDACTED]', record.msg)
        if record.args:
            try:
                formatted = record.getMessage()
            except (TypeError, ValueError):
                return True
            if self._PATTERN.search(formatted):
                record.msg = self._PATTERN.sub('[REDACTED]', formatted)
                record.args = None
        return True


_mask_filter = _SecretMaskingFilter()
for _h in logging.root.handlers:
    _h.addFilter(_mask_filter)

logger = logging.getLogger("hector.main")


# ============================================================
# MODULE IMPORTS
# ============================================================

from core.constants import FANTOM_BLOCK_TIME, FANTOM_RPC_URL, TOR_MINTER_ADDRESS
from core.chain import Web3Ledger
from core.mint_flow import MintFlow
from core.wallet import WalletSession
from api.server import create_app


# ============================================================
# CONFIG
# ============================================================

def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, using {default}")
        return default
    return value


RPC_URL = os.getenv("FANTOM_RPC_URL", FANTOM_RPC_URL)
MINTER_ADDRESS = os.getenv("TOR_MINTER_ADDRESS", TOR_MINTER_ADDRESS)
BLOCK_TIME = _float_env("BLOCK_TIME_SECONDS", FANTOM_BLOCK_TIME)


# ============================================================
# GLOBALS (singleton instances)
# ============================================================

session = WalletSession(private_key=os.getenv("WALLET_PRIVATE_KEY", ""))
ledger = Web3Ledger(rpc_url=RPC_URL, minter_address=MINTER_ADDRESS)
flow = MintFlow(session, ledger, spender=MINTER_ADDRESS, block_time=BLOCK_TIME)


@asynccontextmanager
async def lifespan(app):
    logger.info(f"RPC: {RPC_URL}")
    logger.info(f"Minter: {MINTER_ADDRESS}")
    logger.info(f"Block time: {BLOCK_TIME}s")
    if not session.has_key:
        logger.warning("No WALLET_PRIVATE_KEY — wallet unavailable, read-only page")

    flow.start()
    logger.info("Mint service ready.")

    yield

    logger.info("Mint service shutting down...")
    flow.close()
    logger.info("Goodbye.")


def create_mint_app():
    """Create the fully wired FastAPI app."""
    app = create_app(session, flow, explorer_url_fn=ledger.get_explorer_url)
    app.router.lifespan_context = lifespan
    return app


# ============================================================
# ENTRY POINT
# ============================================================

app = create_mint_app()

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("DEV", "").lower() in ("1", "true", "yes")

    logger.info(f"Starting server on {host}:{port} (reload={reload})")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=LOG_LEVEL.lower(),
    )
