"""Exception types raised by the DDNS shell collaborators."""

from __future__ import annotations


class DdnsError(Exception):
    """Base class for expected, reportable failures."""


class ConfigError(DdnsError):
    pass


class DiscoveryError(DdnsError):
    """No discovery source produced a valid public IPv4 address."""


class UpdateError(DdnsError):
    """The A record could not be found or the update was rejected."""


class DeliveryError(DdnsError):
    """A notification could not be delivered."""
