# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Device capability checks for proximity notifications.

Acquiring the observer's position is a two-step asynchronous operation:
ask for notification permission, then ask for the current position. Both
steps may fail; failure resolves to a result without a location rather
than an error.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from models.entities import Location
from models.enums import NotificationPermission

logger = logging.getLogger(__name__)


class LocationUnavailableError(Exception):
    """Raised when the device cannot provide its position."""
    pass


class DeviceCapabilities:
    """Notification and geolocation capabilities of an observing device."""

    notifications_supported: bool = False

    async def request_permission(self) -> bool:
        raise NotImplementedError

    async def current_position(self) -> Location:
        raise NotImplementedError


class ReportedCapabilities(DeviceCapabilities):
    """
    Capabilities reported by a browser together with its request.

    A missing permission value means the browser has no notification support.
    A missing position means geolocation was denied or unavailable.
    """

    def __init__(
        self,
        permission: Optional[NotificationPermission] = None,
        position: Optional[Location] = None
    ):
        self.permission = NotificationPermission(permission) if permission is not None else None
        self.position = position
        self.notifications_supported = self.permission is not None

    async def request_permission(self) -> bool:
        return self.permission == NotificationPermission.GRANTED

    async def current_position(self) -> Location:
        if self.position is None:
            raise LocationUnavailableError("Device did not report a position")
        return self.position


@dataclass(frozen=True)
class ObserverResult:
    """Outcome of the permission and position checks."""
    permission_granted: bool
    location: Optional[Location] = None
    error: Optional[str] = None


async def acquire_observer_location(
    capabilities: DeviceCapabilities,
    timeout: Optional[float] = None
) -> ObserverResult:
    """
    Request notification permission, then the observer position.

    Args:
        capabilities: Device capabilities to query
        timeout: Seconds to wait for a position; None waits as long as the device does

    Returns:
        ObserverResult; the location is None when unavailable
    """
    if not capabilities.notifications_supported:
        return ObserverResult(permission_granted=False, error="notifications-unsupported")

    if not await capabilities.request_permission():
        return ObserverResult(permission_granted=False, error="permission-denied")

    try:
        location = await asyncio.wait_for(capabilities.current_position(), timeout)
    except LocationUnavailableError as e:
        logger.info(f"Observer location unavailable: {e}")
        return ObserverResult(permission_granted=True, error="location-unavailable")
    except asyncio.TimeoutError:
        logger.info(f"Observer location timed out after {timeout}s")
        return ObserverResult(permission_granted=True, error="location-timeout")

    return ObserverResult(permission_granted=True, location=location)
