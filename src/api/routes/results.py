"""Result history endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_current_user, get_submission_service
from src.auth.security import TokenPayload
from src.models.evaluation import ResultDetail, ResultSummary
from src.services.submission_service import SubmissionService

router = APIRouter(prefix="/user/results", tags=["results"])


@router.get("", response_model=list[ResultSummary])
async def list_results(
    user: TokenPayload = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    return await service.list_results(user.user_id)


@router.get("/{result_id}", response_model=ResultDetail)
async def get_result(
    result_id: str,
    user: TokenPayload = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
):
    return await service.get_result(result_id, user.user_id)
