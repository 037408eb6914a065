"""
Chain Ledger - web3 implementation of the Ledger protocol

Reads balances/allowances and sends approve, mint and redeem transactions on
Fantom. Everything the trackers see goes through here.

Design:
- Sync Web3 calls wrapped in asyncio.run_in_executor() (web3.py async is fragile)
- Embedded minimal ABI: only the functions we call, no compiled JSON needed
- Gas estimation + 20% buffer, nonce auto from chain
- Non-fatal: any failure becomes Err(reason); the pollers retry next tick
- Amounts cross this boundary as Decimal, converted with the token's decimals
"""

import asyncio
import logging
from decimal import Decimal

from .constants import (
    FANTOM_CHAIN_ID,
    FANTOM_DAI,
    FANTOM_EXPLORER,
    FANTOM_RPC_URL,
    FANTOM_TOR,
    TOR_MINTER_ADDRESS,
    Erc20Token,
)
from .result import Err, Ok, Result, TxReceipt
from .units import from_raw, to_raw
from .wallet import Wallet

logger = logging.getLogger("hector.chain")


# ============================================================
# MINIMAL ABI - only functions we call at runtime
# ============================================================

# ERC20: balanceOf, allowance, approve
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# TorMinter: Dai in → Tor out, and back
MINTER_ABI = [
    # mintWithDai(uint256 amount) — pulls Dai (needs allowance), mints Tor
    {
        "inputs": [{"name": "_daiAmount", "type": "uint256"}],
        "name": "mintWithDai",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    # redeemToDai(uint256 amount) — burns Tor (needs allowance), returns Dai
    {
        "inputs": [{"name": "_torAmount", "type": "uint256"}],
        "name": "redeemToDai",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

DEFAULT_GAS = 200_000


# ============================================================
# WEB3 LEDGER
# ============================================================

class Web3Ledger:
    """
    Ledger backed by a JSON-RPC node.

    Usage:
        ledger = Web3Ledger(rpc_url=os.getenv("FANTOM_RPC_URL", FANTOM_RPC_URL))
        result = await ledger.balance_of(wallet, FANTOM_DAI)
        if result.is_ok:
            print(result.value)
    """

    def __init__(
        self,
        rpc_url: str = FANTOM_RPC_URL,
        chain_id: int = FANTOM_CHAIN_ID,
        minter_address: str = TOR_MINTER_ADDRESS,
        reserve_token: Erc20Token = FANTOM_DAI,
        stable_token: Erc20Token = FANTOM_TOR,
        request_timeout: int = 30,
        receipt_timeout: int = 120,
    ):
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.minter_address = minter_address
        self.reserve_token = reserve_token
        self.stable_token = stable_token
        self._request_timeout = request_timeout
        self._receipt_timeout = receipt_timeout

        # Created on first use so constructing the ledger never touches the network
        self._w3 = None
        self._tokens: dict[str, object] = {}   # token address → contract
        self._minter = None

    # ============================================================
    # CONTRACT HANDLES
    # ============================================================

    def _web3(self):
        if self._w3 is None:
            from web3 import Web3

            self._w3 = Web3(
                Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": self._request_timeout})
            )
            logger.info(f"Ledger connected to {self.rpc_url} (chain {self.chain_id})")
        return self._w3

    def _token_contract(self, token: Erc20Token):
        contract = self._tokens.get(token.address)
        if contract is None:
            w3 = self._web3()
            contract = w3.eth.contract(address=w3.to_checksum_address(token.address), abi=ERC20_ABI)
            self._tokens[token.address] = contract
        return contract

    def _minter_contract(self):
        if self._minter is None:
            w3 = self._web3()
            self._minter = w3.eth.contract(
                address=w3.to_checksum_address(self.minter_address), abi=MINTER_ABI
            )
        return self._minter

    async def _call(self, fn):
        return await asyncio.get_running_loop().run_in_executor(None, fn)

    # ============================================================
    # READS
    # ============================================================

    async def balance_of(self, wallet: Wallet, token: Erc20Token) -> Result:
        try:
            contract = self._token_contract(token)
            owner = self._web3().to_checksum_address(wallet.address)
            raw = await self._call(contract.functions.balanceOf(owner).call)
            return Ok(from_raw(raw, token.decimals))
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.debug(f"balanceOf {token.symbol} failed: {error}")
            return Err(error)

    async def allowance(self, wallet: Wallet, token: Erc20Token, spender: str) -> Result:
        try:
            w3 = self._web3()
            contract = self._token_contract(token)
            call = contract.functions.allowance(
                w3.to_checksum_address(wallet.address),
                w3.to_checksum_address(spender),
            ).call
            raw = await self._call(call)
            return Ok(from_raw(raw, token.decimals))
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.debug(f"allowance {token.symbol} failed: {error}")
            return Err(error)

    # ============================================================
    # WRITE TRANSACTIONS
    # ============================================================

    async def _send_tx(self, wallet: Wallet, tx_fn, label: str) -> Result:
        """
        Build, sign, and send a transaction. Handles gas estimation + nonce.

        Args:
            wallet: Connected wallet whose account signs
            tx_fn: A web3 contract function call (e.g. token.functions.approve(spender, amount))
            label: Short name for logs

        Returns:
            Ok(TxReceipt) on a successful receipt, Err otherwise
        """
        if not wallet.is_connected or wallet.account is None:
            return Err("wallet not connected")

        w3 = self._web3()
        account = wallet.account

        def _execute():
            nonce = w3.eth.get_transaction_count(account.address)
            tx = tx_fn.build_transaction({
                "from": account.address,
                "nonce": nonce,
                "gasPrice": w3.eth.gas_price,
                "chainId": self.chain_id,
            })

            # Gas estimation + 20% buffer
            try:
                gas_estimate = w3.eth.estimate_gas(tx)
                tx["gas"] = int(gas_estimate * 1.2)
            except Exception as gas_err:
                logger.warning(f"Gas estimation failed for {label}, using default {DEFAULT_GAS}: {gas_err}")
                tx["gas"] = DEFAULT_GAS

            signed = account.sign_transaction(tx)
            tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self._receipt_timeout)
            return receipt, tx_hash.hex()

        try:
            receipt, tx_hash_hex = await self._call(_execute)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.warning(f"TX ERROR [{label}]: {error}")
            return Err(error)

        if receipt["status"] != 1:
            error = f"TX reverted: {tx_hash_hex}"
            logger.warning(f"TX FAILED [{label}]: {error}")
            return Err(error)

        gas_used = receipt.get("gasUsed", 0)
        logger.info(f"TX SUCCESS [{label}]: {tx_hash_hex[:16]}... | gas={gas_used}")
        return Ok(TxReceipt(
            tx_hash=tx_hash_hex,
            gas_used=gas_used,
            gas_price_wei=receipt.get("effectiveGasPrice", 0),
            block_number=receipt.get("blockNumber", 0),
        ))

    async def approve(self, wallet: Wallet, token: Erc20Token, spender: str, amount: Decimal) -> Result:
        try:
            tx_fn = self._token_contract(token).functions.approve(
                self._web3().to_checksum_address(spender),
                to_raw(amount, token.decimals),
            )
        except Exception as e:
            return Err(f"{type(e).__name__}: {e}")

        result = await self._send_tx(wallet, tx_fn, f"approve {token.symbol}")
        return Ok(None) if result.is_ok else result

    async def mint_with_reserve(self, wallet: Wallet, amount: Decimal) -> Result:
        amount_raw = to_raw(amount, self.reserve_token.decimals)
        if amount_raw <= 0:
            return Err("amount too small")
        try:
            tx_fn = self._minter_contract().functions.mintWithDai(amount_raw)
        except Exception as e:
            return Err(f"{type(e).__name__}: {e}")
        return await self._send_tx(wallet, tx_fn, "mintWithDai")

    async def redeem_to_reserve(self, wallet: Wallet, amount: Decimal) -> Result:
        amount_raw = to_raw(amount, self.stable_token.decimals)
        if amount_raw <= 0:
            return Err("amount too small")
        try:
            tx_fn = self._minter_contract().functions.redeemToDai(amount_raw)
        except Exception as e:
            return Err(f"{type(e).__name__}: {e}")
        return await self._send_tx(wallet, tx_fn, "redeemToDai")

    def get_explorer_url(self, tx_hash: str) -> str:
        """Block explorer URL for a transaction."""
        return f"{FANTOM_EXPLORER}/tx/{tx_hash}"
