"""Food Scan API routes.

Photo analysis endpoint plus read access to stored meal photos.
"""

import logging

from fastapi import APIRouter, Response, status

from food_scan_api.api.dependencies import FoodScanServiceDep, ImageStorageDep
from food_scan_api.core.exceptions import APIError, InvalidScanRequestError
from food_scan_api.models.food_scan import ErrorResponse, FoodScanRequest, FoodScanResponse
from food_scan_api.services.image_storage import StorageError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/analyze",
    response_model=FoodScanResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing image or malformed request"},
        500: {"model": ErrorResponse, "description": "Unexpected processing error"},
        502: {"model": ErrorResponse, "description": "Vision providers unavailable"},
    },
)
async def analyze_food(request: FoodScanRequest, service: FoodScanServiceDep) -> FoodScanResponse:
    """
    Analyze a food photo.

    Returns the validated items with confidence scores. With `meal_entry_id`
    the tracked entry is overwritten with the result; with `auto_save` the
    items are added to the user's meal for the day.
    """
    logger.info(
        f"Food scan request: user={request.user_id} meal_type="
        f"{request.meal_type.value if request.meal_type else None} "
        f"auto_save={request.auto_save} tracked={bool(request.meal_entry_id)}"
    )
    return await service.scan(request)


@router.api_route(
    "/analyze",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def analyze_wrong_method() -> None:
    raise InvalidScanRequestError("Method not allowed; use POST")


@router.get(
    "/images/{file_id}",
    responses={404: {"model": ErrorResponse, "description": "Image not found"}},
)
async def get_image(file_id: str, storage: ImageStorageDep) -> Response:
    """Stream a stored meal photo."""
    try:
        data, content_type = await storage.download(file_id)
    except StorageError as e:
        logger.info(f"Image {file_id} unavailable: {e.message}")
        raise APIError("Image not found", status_code=status.HTTP_404_NOT_FOUND) from e

    return Response(content=data, media_type=content_type)
