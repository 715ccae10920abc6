from fastapi import APIRouter
from document_manager.api.crud import router as crud
from document_manager.api.index_manager import router as index_manager

router = APIRouter()
router.include_router(crud.router, prefix="/crud", tags=["Entities"])
router.include_router(index_manager.router, prefix="/index_manager", tags=["IndexManager"])
