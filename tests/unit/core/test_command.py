"""Tests for the command builder."""

import pytest

from magickpipe.core.command import (
    CommandInvocation,
    attribute_tokens,
    compose_command,
    create_occurrence,
    flag_name,
    geometry,
    is_set,
    resize_clause,
)
from magickpipe.core.options import ConversionOptions


def bare(**kwargs) -> ConversionOptions:
    """Options with no default attributes, so only what a test sets shows up."""
    return ConversionOptions(kwargs, defaults={})


class TestCreateOccurrence:
    """Tests for format handle encoding."""

    def test_with_format(self):
        assert create_occurrence("PNG") == "PNG:-"

    def test_without_format(self):
        assert create_occurrence() == "-"
        assert create_occurrence(None) == "-"

    def test_empty_format_is_ignored(self):
        assert create_occurrence("") == "-"

    def test_custom_name(self):
        assert create_occurrence("JPEG", "out.jpg") == "JPEG:out.jpg"


class TestIsSet:
    """Tests for option presence rules."""

    @pytest.mark.parametrize("value", [1, "none", 0, 0.0, True, -5])
    def test_set_values(self, value):
        assert is_set(value) is True

    @pytest.mark.parametrize("value", [None, False, "", float("nan")])
    def test_unset_values(self, value):
        assert is_set(value) is False


class TestFlagName:
    """Tests for digit-suffix stripping."""

    def test_plain(self):
        assert flag_name("density") == "-density"

    def test_trailing_digits_stripped(self):
        assert flag_name("alpha2") == "-alpha"
        assert flag_name("alpha10") == "-alpha"


class TestAttributeTokens:
    """Tests for attribute flag serialization."""

    def test_defaults(self):
        """Default options emit the default attribute set in order."""
        tokens = attribute_tokens(ConversionOptions())

        assert tokens == (
            "-density",
            "600",
            "-background",
            "none",
            "-gravity",
            "Center",
            "-quality",
            "75",
            "-strip",
        )

    def test_alpha_and_alpha2_both_emitted(self):
        tokens = attribute_tokens(bare(alpha=5, alpha2=7))

        assert tokens == ("-alpha", "5", "-alpha", "7")

    def test_flip_true_has_no_value(self):
        assert attribute_tokens(bare(flip=True)) == ("-flip",)

    def test_flip_false_or_absent(self):
        assert attribute_tokens(bare(flip=False)) == ()
        assert attribute_tokens(bare()) == ()

    def test_zero_is_emitted(self):
        assert attribute_tokens(bare(rotate=0)) == ("-rotate", "0")

    def test_none_override_removes_default(self):
        tokens = attribute_tokens(ConversionOptions(density=None, strip=False))

        assert "-density" not in tokens
        assert "-strip" not in tokens

    def test_integral_float_rendered_as_int(self):
        assert attribute_tokens(bare(rotate=90.0)) == ("-rotate", "90")
        assert attribute_tokens(bare(blur=0.5)) == ("-blur", "0.5")

    def test_string_value(self):
        assert attribute_tokens(bare(blur="0x8")) == ("-blur", "0x8")

    def test_unknown_options_not_forwarded(self):
        assert attribute_tokens(bare(sharpen=3, colorspace="Gray")) == ()


class TestGeometry:
    """Tests for geometry string derivation."""

    def test_width_and_height(self):
        assert geometry(bare(width=100, height=50)) == "100x50"

    def test_width_only(self):
        assert geometry(bare(width=100)) == "100"

    def test_height_only(self):
        assert geometry(bare(height=50)) == "x50"

    def test_zero_width(self):
        assert geometry(bare(width=0)) == "0"

    def test_zero_height(self):
        assert geometry(bare(width=10, height=0)) == "10x0"

    def test_nothing_set(self):
        assert geometry(bare()) == ""


class TestResizeClause:
    """Tests for resize clause derivation."""

    def test_crop(self):
        clause = resize_clause(bare(resize_mode="crop", width=100, height=50))
        assert clause == "-resize 100x50^ -crop 100x50+0+0!"

    def test_fit(self):
        assert resize_clause(bare(resize_mode="fit", width=200)) == "-resize 200"

    def test_fill(self):
        assert resize_clause(bare(resize_mode="fill", width=10, height=20)) == "-resize 10x20!"

    def test_unknown_mode_falls_back_to_crop(self):
        clause = resize_clause(bare(resize_mode="stretch", width=10, height=20))
        assert clause == "-resize 10x20^ -crop 10x20+0+0!"

    def test_no_mode(self):
        assert resize_clause(bare(resize_mode=None, width=10, height=20)) is None

    def test_no_geometry(self):
        assert resize_clause(bare(resize_mode="fit")) is None

    def test_zero_width_still_resizes(self):
        assert resize_clause(bare(resize_mode="fit", width=0)) == "-resize 0"

    def test_default_mode_is_crop(self):
        clause = resize_clause(ConversionOptions(width=100, height=50))
        assert clause == "-resize 100x50^ -crop 100x50+0+0!"


class TestComposeCommand:
    """Tests for the full invocation."""

    def test_token_order(self):
        options = bare(
            source_format="PNG",
            target_format="JPEG",
            width=200,
            resize_mode="fit",
            quality=80,
        )

        invocation = compose_command(options)

        assert invocation.tokens == ["PNG:-", "-quality", "80", "-resize 200", "JPEG:-"]

    def test_end_to_end_handles(self):
        options = ConversionOptions(
            source_bytes=b"\x89PNG",
            source_format="PNG",
            target_format="JPEG",
            width=200,
            resize_mode="fit",
        )

        invocation = compose_command(options)

        assert invocation.origin == "PNG:-"
        assert invocation.resize == "-resize 200"
        assert invocation.destination == "JPEG:-"
        assert invocation.tokens[0] == "PNG:-"
        assert invocation.tokens[-2:] == ["-resize 200", "JPEG:-"]

    def test_no_resize_token_without_geometry(self):
        invocation = compose_command(bare())

        assert invocation.resize is None
        assert invocation.tokens == ["-", "-"]

    def test_argv_splits_compound_resize(self):
        invocation = compose_command(bare(width=100, height=50, resize_mode="crop"))

        assert invocation.tokens == ["-", "-resize 100x50^ -crop 100x50+0+0!", "-"]
        assert invocation.argv == ["-", "-resize", "100x50^", "-crop", "100x50+0+0!", "-"]

    def test_idempotent(self):
        options = ConversionOptions(
            source_format="PNG", width=64, height=64, alpha=5, alpha2=7, flip=True
        )

        assert compose_command(options) == compose_command(options)
        assert compose_command(options).tokens == compose_command(options).tokens

    def test_accepts_plain_mapping(self):
        invocation = compose_command({"target_format": "WEBP"})
        assert invocation.tokens == ["-", "WEBP:-"]

    def test_command_line_is_quoted(self):
        invocation = CommandInvocation(
            origin="PNG:-",
            attributes=("-background", "rgba(0,0,0,0)"),
            resize=None,
            destination="JPEG:-",
        )

        line = invocation.command_line("convert")

        assert line == "convert PNG:- -background 'rgba(0,0,0,0)' JPEG:-"

    def test_invocation_is_frozen(self):
        invocation = compose_command(bare())
        with pytest.raises(AttributeError):
            invocation.origin = "PNG:-"  # type: ignore[misc]
