"""Explorer endpoints: one route per dashboard query."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
import structlog

from regtest_explorer.api.dependencies import get_explorer
from regtest_explorer.api.schemas import BroadcastRequest, SendFundsRequest, TxidResponse
from regtest_explorer.core.explorer import BlockExplorer

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/chain")
def get_chain(explorer: BlockExplorer = Depends(get_explorer)):
    """Chain name, height, best block and difficulty."""
    return explorer.get_chain_info()


@router.get("/blocks")
def list_blocks(
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Number of blocks"),
    explorer: BlockExplorer = Depends(get_explorer)
):
    """Most recent blocks, newest first."""
    return explorer.list_blocks(limit)


@router.get("/blocks/{height_or_hash}")
def get_block(height_or_hash: str, explorer: BlockExplorer = Depends(get_explorer)):
    """Block with transactions, by height or hash."""
    return explorer.get_block(height_or_hash)


@router.get("/addresses/{address}")
def get_address(address: str, explorer: BlockExplorer = Depends(get_explorer)):
    """
    Balance, UTXOs and recent history of an address.

    Balance and UTXOs are exact. History only covers the most recent
    ``history_window`` blocks reported in the response.
    """
    return explorer.get_address_view(address)


@router.get("/transactions")
def list_transactions(
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Page size"),
    offset: int = Query(default=0, ge=0, description="Transactions to skip from the tip"),
    explorer: BlockExplorer = Depends(get_explorer)
):
    """Recent confirmed transactions with fees. ``has_more`` is false on the last page."""
    return explorer.list_transactions(limit, offset)


@router.post("/transactions/broadcast", response_model=TxidResponse)
def broadcast_transaction(request: BroadcastRequest, explorer: BlockExplorer = Depends(get_explorer)):
    """Broadcast a signed raw transaction."""
    txid = explorer.broadcast_raw_transaction(request.hex)
    return TxidResponse(txid=txid)


@router.get("/transactions/{txid}")
def get_transaction(txid: str, explorer: BlockExplorer = Depends(get_explorer)):
    """One transaction with resolved inputs and fee."""
    return explorer.get_transaction(txid)


@router.get("/mempool")
def list_mempool(explorer: BlockExplorer = Depends(get_explorer)):
    """Unconfirmed transactions with resolved inputs and fees."""
    return explorer.list_mempool()


@router.get("/mempool/info")
def get_mempool_info(explorer: BlockExplorer = Depends(get_explorer)):
    return explorer.get_mempool_info()


@router.get("/mempool/entries")
def list_mempool_entries(explorer: BlockExplorer = Depends(get_explorer)):
    return explorer.list_mempool_entries()


@router.get("/fees")
def get_fees(
    target: Optional[int] = Query(default=None, ge=1, le=1008, description="Custom confirmation target"),
    explorer: BlockExplorer = Depends(get_explorer)
):
    """Fee recommendations for fast, medium and slow confirmation, or one custom target."""
    if target is not None:
        return explorer.estimate_fee(target)
    return explorer.get_fee_recommendation()


@router.get("/difficulty")
def get_difficulty(explorer: BlockExplorer = Depends(get_explorer)):
    """Next difficulty retarget projection."""
    return explorer.get_retarget_projection()


@router.post("/faucet", response_model=TxidResponse, status_code=status.HTTP_201_CREATED)
def send_funds(request: SendFundsRequest, explorer: BlockExplorer = Depends(get_explorer)):
    """Send regtest coins from the node wallet."""
    logger.info("Faucet request", address=request.address, amount=str(request.amount))
    txid = explorer.send_funds(request.address, request.amount)
    return TxidResponse(txid=txid)
