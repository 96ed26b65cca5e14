"""
Pydantic Models for the Pairing API

Request/response models for the two pairing endpoints. Each endpoint has its
own response model: the success shape is determined by which endpoint was
called, never guessed from the payload.

Field names accept both the camelCase spelling and the snake_case spelling
used by the Astarte pairing API.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, Field


# Request Models

class CsrData(BaseModel):
    """Certificate signing request payload."""
    csr: str = Field(..., description="PEM encoded certificate signing request")


class CredentialsRequest(BaseModel):
    """Request body for the credentials endpoint."""
    data: CsrData


# Response Models

class ClientCredentials(BaseModel):
    """Credentials issued for the astarte_mqtt_v1 protocol."""
    client_certificate: str = Field(
        ...,
        validation_alias=AliasChoices("clientCertificate", "client_crt"),
        description="PEM encoded client certificate",
    )


class CredentialsResponse(BaseModel):
    """Response body of ``POST .../protocols/astarte_mqtt_v1/credentials``."""
    data: ClientCredentials


class MqttV1Info(BaseModel):
    """Connection info for the astarte_mqtt_v1 protocol."""
    broker_url: str = Field(
        ...,
        validation_alias=AliasChoices("brokerUrl", "broker_url"),
        description="URL of the MQTT broker",
    )


class ProtocolsInfo(BaseModel):
    """Protocols the device may use."""
    astarte_mqtt_v1: MqttV1Info = Field(
        ...,
        validation_alias=AliasChoices("astarteMqttV1", "astarte_mqtt_v1"),
    )


class DeviceStatus(BaseModel):
    """Device status as reported by the pairing API."""
    version: Any = Field(..., description="Pairing API version")
    status: Any = Field(..., description="Device status")
    protocols: ProtocolsInfo


class DeviceStatusResponse(BaseModel):
    """Response body of ``GET /v1/{realm}/devices/{device_id}``."""
    data: DeviceStatus
