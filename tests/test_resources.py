"""Tests for resource types, folder kinds and resource URL parsing."""

from __future__ import annotations

import pytest

from resusage.resources import (
    ResourceFolderType,
    ResourceType,
    ResourceUrl,
    file_name_to_resource_name,
    has_image_extension,
    resource_name_to_field_name,
)


def test_resource_type_lookups_exclude_synthetic_types() -> None:
    assert ResourceType.from_class_name("drawable") is ResourceType.DRAWABLE
    assert ResourceType.from_class_name("styleable") is ResourceType.STYLEABLE
    assert ResourceType.from_class_name("public") is None
    assert ResourceType.from_xml_value("styleable") is None
    assert ResourceType.from_xml_value("public") is None
    assert ResourceType.from_xml_value("bogus") is None


def test_resource_type_from_xml_tag() -> None:
    assert ResourceType.from_xml_tag("string-array") is ResourceType.ARRAY
    assert ResourceType.from_xml_tag("declare-styleable") is ResourceType.STYLEABLE
    assert ResourceType.from_xml_tag("public") is ResourceType.PUBLIC
    assert ResourceType.from_xml_tag("item", "id") is ResourceType.ID
    assert ResourceType.from_xml_tag("item") is None
    assert ResourceType.from_xml_tag("LinearLayout") is None


def test_folder_type_uses_first_segment() -> None:
    assert ResourceFolderType.from_folder_name("drawable-hdpi-v21") is ResourceFolderType.DRAWABLE
    assert ResourceFolderType.from_folder_name("values-fr") is ResourceFolderType.VALUES
    assert ResourceFolderType.from_folder_name("assets") is None
    assert ResourceFolderType.LAYOUT.related_types() == [ResourceType.LAYOUT]
    assert ResourceType.STRING in ResourceFolderType.VALUES.related_types()


def test_ordinal_follows_declaration_order() -> None:
    assert ResourceType.ANIM.ordinal < ResourceType.DRAWABLE.ordinal < ResourceType.XML.ordinal


@pytest.mark.parametrize(
    ("text", "rtype", "name", "namespace", "theme", "create"),
    [
        ("@drawable/icon", ResourceType.DRAWABLE, "icon", None, False, False),
        ("  @string/hello  ", ResourceType.STRING, "hello", None, False, False),
        ("@+id/button", ResourceType.ID, "button", None, False, True),
        ("?attr/colorPrimary", ResourceType.ATTR, "colorPrimary", None, True, False),
        ("?colorAccent", ResourceType.ATTR, "colorAccent", None, True, False),
        ("@android:color/white", ResourceType.COLOR, "white", "android", False, False),
        ("@*android:string/private", ResourceType.STRING, "private", "android", False, False),
        ("@color/android:black", ResourceType.COLOR, "black", "android", False, False),
        ("@com.example:layout/row", ResourceType.LAYOUT, "row", "com.example", False, False),
    ],
)
def test_resource_url_parse(
    text: str,
    rtype: ResourceType,
    name: str,
    namespace: str | None,
    theme: bool,
    create: bool,
) -> None:
    url = ResourceUrl.parse(text)

    assert url is not None
    assert url.type is rtype
    assert url.name == name
    assert url.namespace == namespace
    assert url.theme is theme
    assert url.create is create


@pytest.mark.parametrize(
    "text",
    [
        None,
        "",
        "@",
        "plain text",
        "@null",
        "@empty",
        "@bogus/name",
        "@drawable/",
        "@drawable/a/b",
        "@drawable/two words",
        "@+string/not_an_id",
        "?+attr/x",
        "@{user.name}",
    ],
)
def test_resource_url_parse_rejects_non_references(text: str | None) -> None:
    assert ResourceUrl.parse(text) is None


def test_resource_url_framework_and_str() -> None:
    url = ResourceUrl.parse("@android:drawable/ic_menu")
    assert url is not None
    assert url.is_framework
    assert str(url) == "@android:drawable/ic_menu"
    assert str(ResourceUrl.parse("@+id/title")) == "@+id/title"


def test_name_helpers() -> None:
    assert resource_name_to_field_name("Theme.App-Dark:v2") == "Theme_App_Dark_v2"
    assert resource_name_to_field_name("CamelCase") == "CamelCase"
    assert file_name_to_resource_name("icon.png") == "icon"
    assert file_name_to_resource_name("button.9.png") == "button"
    assert file_name_to_resource_name("archive.tar.gz") == "archive.tar"
    assert file_name_to_resource_name("noext") == "noext"
    assert file_name_to_resource_name(".hidden") == ".hidden"
    assert has_image_extension("photo.JPG")
    assert has_image_extension("button.9.png")
    assert not has_image_extension("intro.html")
