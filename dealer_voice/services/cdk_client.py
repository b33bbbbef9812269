"""
CDK CRM client.

Customer and vehicle lookups are not connected to the CDK API yet; every method
logs the request and returns an empty result so assistant tools can already be
wired against this interface.
"""

import logging
from typing import Any, List, Optional

from pydantic import BaseModel

from dealer_voice.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


class CdkConfig(BaseModel):
    api_key: str
    dealer_code: str


class CdkCustomer(BaseModel):
    id: str
    firstName: str
    lastName: str
    phone: str
    email: Optional[str] = None


class CdkVehicle(BaseModel):
    id: str
    vin: str
    make: str
    model: str
    year: int


class CdkClient:
    """Client for one dealership's CDK account."""

    def __init__(self, config: CdkConfig):
        self.config = config

    def lookup_customer_by_phone(self, phone_number: str) -> Optional[CdkCustomer]:
        logger.info(f"[CDK] Looking up customer with phone: {phone_number}")
        return None

    def lookup_customer_by_name(self, name: str) -> List[CdkCustomer]:
        logger.info(f"[CDK] Looking up customer with name: {name}")
        return []

    def get_customer_vehicles(self, customer_id: str) -> List[CdkVehicle]:
        logger.info(f"[CDK] Getting vehicles for customer: {customer_id}")
        return []

    def get_service_history(self, customer_id: str) -> List[Any]:
        logger.info(f"[CDK] Getting service history for customer: {customer_id}")
        return []

    def validate_credentials(self) -> bool:
        logger.info(f"[CDK] Validating credentials for dealer {self.config.dealer_code}")
        return True


def create_cdk_client(config: CdkConfig) -> CdkClient:
    return CdkClient(config)
