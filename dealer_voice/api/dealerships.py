"""
Dealership settings API.

Every route requires a signed-in user. The general, agent, telephony and
integration routes return fixed placeholder payloads until their storage is
built; the Twilio and phone number routes read and write the caller's tenant.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from dealer_voice.config.constants import LOGGER_NAME
from dealer_voice.config.settings import Settings, get_settings
from dealer_voice.api.deps import get_db, require_tenant_id, require_user
from dealer_voice.api.errors import ApiError
from dealer_voice.models.api_schemas import (
    CdkCredentialsRequest,
    PhoneNumberRequest,
    TwilioCredentialsRequest,
)
from dealer_voice.models.records import AgentType
from dealer_voice.services import dealership_service
from dealer_voice.services.cdk_client import CdkClient, CdkConfig
from dealer_voice.services.errors import ServiceError

logger = logging.getLogger(LOGGER_NAME)

router = APIRouter(
    prefix="/api/dealerships/{dealership_id}",
    tags=["dealerships"],
    dependencies=[Depends(require_user)],
)


def get_tenant_dealership(
    dealership_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db=Depends(get_db),
) -> Dict[str, Any]:
    """The dealership, if it belongs to the caller's tenant; 404 otherwise."""
    return dealership_service.get_dealership(db, dealership_id, tenant_id)


# General settings


@router.get("/general")
def get_general(dealership_id: str):
    return {"dealershipId": dealership_id, "settings": None}


@router.post("/general")
def update_general(dealership_id: str, body: Optional[Dict[str, Any]] = Body(None)):
    return {"dealershipId": dealership_id, "success": True}


# Agents


@router.get("/agents")
def list_agents(dealership_id: str):
    return {"dealershipId": dealership_id, "agents": []}


@router.post("/agents")
def create_agent(dealership_id: str, body: Optional[Dict[str, Any]] = Body(None)):
    return {"dealershipId": dealership_id, "agent": None}


@router.get("/agents/{agent_type}")
def get_agent(dealership_id: str, agent_type: AgentType):
    return {"dealershipId": dealership_id, "agentType": agent_type.value, "config": None}


@router.post("/agents/{agent_type}")
def update_agent(
    dealership_id: str, agent_type: AgentType, body: Optional[Dict[str, Any]] = Body(None)
):
    return {"dealershipId": dealership_id, "agentType": agent_type.value, "success": True}


# Telephony


@router.get("/telephony")
def get_telephony(dealership_id: str):
    return {"dealershipId": dealership_id, "telephony": None}


@router.post("/telephony")
def update_telephony(dealership_id: str, body: Optional[Dict[str, Any]] = Body(None)):
    return {"dealershipId": dealership_id, "success": True}


# Integrations


@router.get("/integrations")
def list_integrations(dealership_id: str):
    return {"dealershipId": dealership_id, "integrations": []}


@router.get("/integrations/cdk")
def get_cdk_integration(dealership_id: str):
    return {"dealershipId": dealership_id, "cdk": None}


@router.post("/integrations/cdk")
def connect_cdk_integration(
    dealership_id: str, body: Optional[CdkCredentialsRequest] = Body(None)
):
    """Check CDK credentials when they are supplied."""
    success = True
    if body is not None and body.apiKey and body.dealerCode:
        client = CdkClient(CdkConfig(api_key=body.apiKey, dealer_code=body.dealerCode))
        success = client.validate_credentials()
    return {"dealershipId": dealership_id, "success": success}


@router.delete("/integrations/cdk")
def disconnect_cdk_integration(dealership_id: str):
    return {"dealershipId": dealership_id, "success": True}


# Twilio


@router.get("/twilio")
def get_twilio_config(
    dealership: Dict[str, Any] = Depends(get_tenant_dealership),
    db=Depends(get_db),
):
    """Twilio account status and phone numbers of the dealership's tenant."""
    try:
        return dealership_service.get_twilio_config(db, dealership["tenant_id"])
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"[Twilio Config GET] Error: {e}", exc_info=True)
        raise ApiError(500, "Failed to fetch Twilio configuration")


@router.post("/twilio")
def save_twilio_config(
    body: TwilioCredentialsRequest,
    dealership: Dict[str, Any] = Depends(get_tenant_dealership),
    db=Depends(get_db),
):
    try:
        return dealership_service.save_twilio_credentials(
            db, dealership["tenant_id"], body.accountSid, body.authToken
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"[Twilio Config POST] Error: {e}", exc_info=True)
        raise ApiError(500, "Failed to save Twilio credentials")


@router.delete("/twilio")
def delete_twilio_config(
    dealership: Dict[str, Any] = Depends(get_tenant_dealership),
    db=Depends(get_db),
):
    try:
        return dealership_service.remove_twilio_credentials(db, dealership["tenant_id"])
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"[Twilio Config DELETE] Error: {e}", exc_info=True)
        raise ApiError(500, "Failed to remove Twilio credentials")


# Phone numbers


@router.get("/phone-numbers")
def list_phone_numbers(
    dealership: Dict[str, Any] = Depends(get_tenant_dealership),
    db=Depends(get_db),
):
    try:
        return {"phoneNumbers": dealership_service.list_phone_numbers(db, dealership["tenant_id"])}
    except Exception as e:
        logger.error(f"[Phone Numbers GET] Error: {e}", exc_info=True)
        raise ApiError(500, "Failed to fetch phone numbers")


@router.post("/phone-numbers")
def add_phone_number(
    body: PhoneNumberRequest,
    dealership: Dict[str, Any] = Depends(get_tenant_dealership),
    db=Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Add a number to the dealership and configure its Twilio webhook when possible."""
    try:
        return dealership_service.add_phone_number(
            db,
            settings,
            dealership["tenant_id"],
            dealership["id"],
            body.phoneNumber,
            body.twilioSid,
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"[Phone Numbers POST] Error: {e}", exc_info=True)
        raise ApiError(500, "Failed to add phone number")
