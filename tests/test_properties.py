"""Field reflection on Record models."""

from datetime import datetime

import pytest

from versionic import Discriminator, Property, Serial
from versionic.core.properties import (
    discriminator_of,
    is_optional,
    key_of,
    properties_of,
    unwrap_optional,
)

from .models import Article, Note, Page, Story


class TestProperty:
    def test_serial_implies_key(self):
        marker = Serial()
        assert marker.options == {"key": True, "serial": True}

    def test_unknown_option_rejected(self):
        with pytest.raises(TypeError):
            Property(unique=True)

    def test_markers_compare_by_kind_and_options(self):
        assert Property(length=10) == Property(length=10)
        assert Property() != Discriminator()


class TestReflection:
    def test_declaration_order_kept(self):
        assert [p.name for p in properties_of(Article)] == [
            "id",
            "kind",
            "headline",
            "revision",
            "tags",
        ]

    def test_kinds(self):
        props = {p.name: p for p in properties_of(Article)}
        assert props["id"].serial and props["id"].key
        assert props["kind"].discriminator
        assert props["headline"].options == {"length": 200, "index": True}
        assert not props["revision"].key

    def test_key_of(self):
        assert [p.name for p in key_of(Story)] == ["id"]
        assert [p.name for p in key_of(Page)] == ["slug"]

    def test_discriminator_of(self):
        assert discriminator_of(Article).name == "kind"
        assert discriminator_of(Note) is None

    def test_optional_helpers(self):
        assert is_optional(datetime | None)
        assert not is_optional(int)
        assert unwrap_optional(int | None) is int
        assert unwrap_optional(str) is str
