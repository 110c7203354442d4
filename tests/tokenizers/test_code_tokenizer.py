"""Tests for the R field scanner used on Java and Kotlin sources."""

from __future__ import annotations

from resusage.resources.types import ResourceType
from resusage.tokenizers import CodeReference, tokenize_code


def test_finds_field_accesses() -> None:
    source = """
    package com.example;

    public class MainActivity extends Activity {
        protected void onCreate(Bundle state) {
            setContentView(R.layout.activity_main);
            getString(com.example.R.string.app_name);
            int[] attrs = R.styleable.MyView;
        }
    }
    """

    assert list(tokenize_code(source)) == [
        CodeReference(ResourceType.LAYOUT, "activity_main"),
        CodeReference(ResourceType.STRING, "app_name"),
        CodeReference(ResourceType.STYLEABLE, "MyView"),
    ]


def test_skips_comments_strings_and_characters() -> None:
    source = """
    // R.string.line_comment
    /* R.string.block_comment
       R.drawable.still_comment */
    String s = "R.string.in_string \\" R.string.after_escape";
    char c = '\\'';
    char r = 'R';
    val icon = R.drawable.icon
    """

    assert list(tokenize_code(source)) == [CodeReference(ResourceType.DRAWABLE, "icon")]


def test_ignores_identifiers_ending_in_r_and_unknown_types() -> None:
    source = "MyR.string.nope; R.bogus.thing; R.string.; R.layout"

    assert list(tokenize_code(source)) == []


def test_reference_at_end_of_input() -> None:
    assert list(tokenize_code("R.id.button")) == [CodeReference(ResourceType.ID, "button")]
