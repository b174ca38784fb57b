from fastapi import APIRouter, Depends

from ...dependencies import get_kiosk_config
from ...schemas import FormConfigOut, KioskConfig

router = APIRouter()


@router.get("/form", response_model=FormConfigOut, summary="Form fields and UI text for the kiosk screens")
async def form_config(config: KioskConfig = Depends(get_kiosk_config)) -> FormConfigOut:
    return FormConfigOut(
        version=config.version,
        app=config.app,
        form_fields=config.ordered_fields(),
        buttons=config.buttons,
        messages=config.messages,
    )
