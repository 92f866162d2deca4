# app/routes/maps.py

from fastapi import APIRouter, HTTPException
from app.models.requests import GenerateMapRequest, ValidateGridRequest
from app.models.responses import MapResponse, ValidationResponse, ViolationModel
from app.services.generator import SettingsError, check_tiles, generate_map
from app.services.map_code import MapCodeError, map_code_to_tiles
from mapgen.generator import ConfigurationError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate-map", response_model=MapResponse)
def generate_map_route(req: GenerateMapRequest):
    try:
        result = generate_map(req.model_dump())
        return MapResponse(**result)

    except (SettingsError, ConfigurationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Map generation failed")
        raise HTTPException(status_code=500, detail=f"An internal server error occurred: {str(e)}")


@router.post("/validate-grid", response_model=ValidationResponse)
def validate_grid_route(req: ValidateGridRequest):
    try:
        if req.mapCode:
            tiles = map_code_to_tiles(req.mapCode)
        elif req.tiles:
            tiles = req.tiles
        else:
            raise HTTPException(status_code=400, detail="Provide either 'mapCode' or 'tiles'.")

        violations, counts, passed = check_tiles(tiles)
        return ValidationResponse(
            violations=[ViolationModel(**v) for v in violations],
            counts=counts,
            passed=passed,
        )

    except MapCodeError as e:
        raise HTTPException(status_code=422, detail=f"Invalid map code: {e}")
    except SettingsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Grid validation failed")
        raise HTTPException(status_code=500, detail=f"An internal server error occurred: {str(e)}")
