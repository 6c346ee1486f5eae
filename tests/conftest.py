"""Shared fixtures for pkghealth tests."""

import pytest

from pkghealth.models.schemas import ComponentIdentity


@pytest.fixture
def npm_identity() -> ComponentIdentity:
    return ComponentIdentity(type="npm", name="lodash", version="4.17.21")


@pytest.fixture
def maven_identity() -> ComponentIdentity:
    return ComponentIdentity(type="maven", namespace="com.google.guava", name="guava", version="33.0.0-jre")
