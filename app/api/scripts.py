"""Call script API endpoints."""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from app.core.dependencies import get_script_repository
from app.services.scripts.repository import (
    MissingScriptFieldsError,
    ScriptNotFoundError,
    ScriptRepository,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/scripts")
async def get_all_scripts(
    script_repository: ScriptRepository = Depends(get_script_repository),
):
    """Get all available scripts."""
    scripts = await script_repository.list_scripts()
    return {
        "success": True,
        "scripts": {script.name: script.model_dump() for script in scripts},
        "common": await script_repository.get_common(),
    }


@router.post("/scripts/{script_type}")
async def generate_script(
    script_type: str,
    customer_data: Dict[str, Any] = Body(default={}),
    script_repository: ScriptRepository = Depends(get_script_repository),
):
    """Render a script with customer data."""
    try:
        script = await script_repository.render(script_type, customer_data)
        flow = await script_repository.get_flow(script_type)
        data = await script_repository.build_customer_data(script_type, customer_data)
    except ScriptNotFoundError:
        raise HTTPException(status_code=404, detail=f"Invalid script type: {script_type}")
    except MissingScriptFieldsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"[SCRIPTS] Rendered script - Type: {script_type}")
    return {
        "success": True,
        "call_type": script_type,
        "script": script,
        "conversation_flow": flow,
        "customer_data": data,
    }


@router.get("/scripts/{script_type}/sample")
async def sample_script(
    script_type: str,
    script_repository: ScriptRepository = Depends(get_script_repository),
):
    """Render a script with its bundled sample data."""
    try:
        sample_data = (await script_repository.get_script(script_type)).sample_data
        script = await script_repository.render(script_type, sample_data)
        flow = await script_repository.get_flow(script_type)
    except ScriptNotFoundError:
        raise HTTPException(status_code=404, detail=f"Invalid script type: {script_type}")
    except MissingScriptFieldsError as e:
        raise HTTPException(status_code=500, detail=f"Sample data incomplete: {str(e)}")

    return {
        "success": True,
        "call_type": script_type,
        "script": script,
        "conversation_flow": flow,
        "sample_data": sample_data,
    }
