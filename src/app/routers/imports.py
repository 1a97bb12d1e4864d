from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Optional
from catalog.base import RemoteRejectionError
from config.settings import get_settings
from pipeline.errors import ConfigurationError, JobError, RemoteTimeoutError
from pipeline.graph import run_job

router = APIRouter()


class ImportRequest(BaseModel):
    products_resource: Optional[str] = None
    max_products: Optional[int] = Field(None, ge=0)
    chunk_size: Optional[int] = Field(None, ge=1)


@router.post("/import")
async def run_import(req: ImportRequest):
    overrides = req.model_dump(exclude_none=True)
    settings = get_settings().model_copy(update=overrides)
    try:
        return await run_job(settings)
    except FileNotFoundError as e:
        raise HTTPException(status_code=400, detail=f"products resource not found: {e.filename}")
    except ConfigurationError as e:
        raise HTTPException(status_code=501, detail=str(e))
    except RemoteRejectionError as e:
        raise HTTPException(status_code=502, detail={"message": e.message, "errors": e.errors})
    except RemoteTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))
    except JobError as e:
        raise HTTPException(status_code=500, detail=str(e))
