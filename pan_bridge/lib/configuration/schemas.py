from __future__ import annotations

import re
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator

from pan_bridge.lib.network_control import address_calculator


class PanBridgeGeneral(BaseModel):
    bluetooth_name: str = Field(default="pan-bridge")
    bridge_name: str = Field(default="pan0", min_length=1, max_length=15)
    bridge_dhcp: bool = Field(default=True)
    mac_filter: str = Field(default=".")
    bridge_address: str = Field(default="10.0.0.1/24")
    loop_interval: float = Field(default=1.0, gt=0)

    @field_validator("mac_filter")
    def valid_regex(cls, v):  # noqa: N805
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid MAC filter pattern: {e}") from e
        return v

    @field_validator("bridge_address")
    def valid_address(cls, v):  # noqa: N805
        if v != "auto":
            address_calculator.network(v)
        return v


class PanBridgeConnectivity(BaseModel):
    probe_url: str = Field(default="http://connectivitycheck.gstatic.com/generate_204")
    timeout: float = Field(default=3.0, gt=0)
    attempts: int = Field(default=3, ge=1)


class PanBridgeDhcp(BaseModel):
    dns_servers: List[str] = Field(default_factory=lambda: ["8.8.8.8", "8.8.4.4"])
    lease_seconds: int = Field(default=86400, gt=0)
    range_start: int = Field(default=100, ge=1, le=254)


class PanBridgeConfig(BaseModel):
    General: PanBridgeGeneral = Field(default_factory=PanBridgeGeneral)
    Connectivity: PanBridgeConnectivity = Field(default_factory=PanBridgeConnectivity)
    Dhcp: PanBridgeDhcp = Field(default_factory=PanBridgeDhcp)

    @model_validator(mode="after")
    def dhcp_range_fits_bridge(self):
        if self.General.bridge_address != "auto":
            address_calculator.host_at(self.General.bridge_address, self.Dhcp.range_start)
        return self
