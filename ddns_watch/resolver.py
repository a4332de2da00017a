"""Lookup of the A record currently published for the domain."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import dns.exception
import dns.resolver

from ddns_watch.address import validate

RESOLVER_TIMEOUT_S = 3.0

logger = logging.getLogger(__name__)


def make_resolver(nameservers: Sequence[str] = ()) -> dns.resolver.Resolver:
    resolver = dns.resolver.Resolver(configure=not nameservers)
    if nameservers:
        resolver.nameservers = list(nameservers)
    resolver.timeout = RESOLVER_TIMEOUT_S
    resolver.lifetime = RESOLVER_TIMEOUT_S
    return resolver


def published_address(domain: str, nameservers: Sequence[str] = ()) -> Optional[str]:
    """First A record for ``domain``, or None when it cannot be resolved."""

    if not domain:
        return None
    resolver = make_resolver(nameservers)
    try:
        answer = resolver.resolve(domain, "A", lifetime=RESOLVER_TIMEOUT_S)
    except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
        return None
    except dns.exception.Timeout:
        logger.warning("timeout resolving %s", domain)
        return None
    except dns.exception.DNSException as exc:
        logger.warning("error resolving %s: %s", domain, exc)
        return None
    for rdata in answer:
        address = validate(rdata.to_text())
        if address is not None:
            return address
    return None
