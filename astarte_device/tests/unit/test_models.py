"""
Unit Tests for Pairing API Models
"""

import pytest
from pydantic import ValidationError

from astarte_device.models import CredentialsRequest, CredentialsResponse, CsrData, DeviceStatusResponse


class TestCredentialsModels:

    def test_request_body(self):
        body = CredentialsRequest(data=CsrData(csr="PEM")).model_dump()
        assert body == {"data": {"csr": "PEM"}}

    @pytest.mark.parametrize("field", ["clientCertificate", "client_crt"])
    def test_response_field_spellings(self, field):
        response = CredentialsResponse.model_validate({"data": {field: "PEM"}})
        assert response.data.client_certificate == "PEM"

    def test_missing_certificate(self):
        with pytest.raises(ValidationError):
            CredentialsResponse.model_validate({"data": {}})


class TestDeviceStatusResponse:

    def test_extra_fields_ignored(self):
        response = DeviceStatusResponse.model_validate({
            "data": {
                "version": "1.0.0",
                "status": "connected",
                "protocols": {"astarteMqttV1": {"brokerUrl": "mqtts://b:8883"}, "other": {}},
                "registered": True,
            }
        })

        assert response.data.protocols.astarte_mqtt_v1.broker_url == "mqtts://b:8883"
        assert response.data.status == "connected"

    @pytest.mark.parametrize("data", [
        {"status": "connected", "protocols": {"astarteMqttV1": {"brokerUrl": "u"}}},
        {"version": "1", "protocols": {"astarteMqttV1": {"brokerUrl": "u"}}},
        {"version": "1", "status": "connected", "protocols": {"astarteMqttV1": {}}},
        {"version": "1", "status": "connected"},
    ])
    def test_required_fields(self, data):
        with pytest.raises(ValidationError):
            DeviceStatusResponse.model_validate({"data": data})
