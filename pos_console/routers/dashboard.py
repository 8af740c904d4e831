# pos_console/routers/dashboard.py

from fastapi import APIRouter, Depends

from pos_console.core.auth import get_current_user
from pos_console.schemas.dashboard import DashboardResponse
from pos_console.services.dashboard import build_dashboard
from pos_console.services.data_service import DataService, get_data_service

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponse)
def dashboard(
    data: DataService = Depends(get_data_service),
    current_user: dict = Depends(get_current_user),
):
    return build_dashboard(data, current_user["store_id"])
