from fastapi import APIRouter, Depends, Path, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.core.rbac import require_admin_like
from worktime.core.security import get_current_user
from worktime.db.mongo import get_mongo_db
from worktime.schemas.qr_schema import QRCodeIn, QRCodeOut, QRVerifyOut, ScanEntryOut, ScanIn, ScanOut
from worktime.services import qr_bridge
from worktime.services.qr_bridge import QRBridge
from worktime.services.timer_service import TimerService


router = APIRouter(prefix="/qr", tags=["qr"])


def get_qr_bridge(db: AsyncIOMotorDatabase = Depends(get_mongo_db)) -> QRBridge:
    return QRBridge(db, TimerService(db))


def _code_out(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "code": doc["code"],
        "name": doc.get("name", ""),
        "is_active": bool(doc.get("is_active", True)),
        "created_at": doc.get("created_at"),
    }


@router.post("/scan", response_model=ScanOut)
async def scan(
    payload: ScanIn,
    bridge: QRBridge = Depends(get_qr_bridge),
    current_user=Depends(get_current_user),
):
    return await bridge.scan(current_user, payload.code)


@router.get("/entries/today", response_model=list[ScanEntryOut])
async def today_entries(
    bridge: QRBridge = Depends(get_qr_bridge),
    current_user=Depends(get_current_user),
):
    return await bridge.today_scans(current_user)


# ---------------------- QR code management ----------------------


@router.post("/codes", response_model=QRCodeOut, status_code=status.HTTP_201_CREATED)
async def create_code(
    payload: QRCodeIn,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    require_admin_like(current_user)
    doc = await qr_bridge.generate_qr_code(db, current_user, payload.name)
    return _code_out(doc)


@router.get("/codes", response_model=list[QRCodeOut])
async def list_codes(
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    require_admin_like(current_user)
    return [_code_out(d) for d in await qr_bridge.list_qr_codes(db, current_user)]


@router.delete("/codes/{qr_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_code(
    qr_id: str = Path(...),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    require_admin_like(current_user)
    await qr_bridge.deactivate_qr_code(db, current_user, qr_id)
    return None


@router.get("/verify/{code}", response_model=QRVerifyOut)
async def verify_code(code: str = Path(...), db: AsyncIOMotorDatabase = Depends(get_mongo_db)):
    return await qr_bridge.verify_qr_code(db, code)
