"""Scenario tests for the resource usage model."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List

from resusage.resources.types import ResourceFolderType, ResourceType
from resusage.usage import ResourceUsageModel, is_analytics_file, split_name

NAMESPACES = (
    'xmlns:android="http://schemas.android.com/apk/res/android" '
    'xmlns:app="http://schemas.android.com/apk/res-auto" '
    'xmlns:tools="http://schemas.android.com/tools" '
    'xmlns:aapt="http://schemas.android.com/aapt"'
)


def _visit(
    model: ResourceUsageModel,
    path: str,
    folder_type: ResourceFolderType | None,
    xml: str,
) -> None:
    xml = xml.replace("NAMESPACES", NAMESPACES)
    model.visit_xml_document(Path(path), folder_type, ET.fromstring(xml), text=xml)


def _names(resources) -> List[str]:
    return [resource.url for resource in resources]


class RecordingModel(ResourceUsageModel):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.unresolved: List[str] = []

    def on_unresolved_string_literal(self, value: str) -> None:
        self.unresolved.append(value)


def test_split_name_and_analytics_file() -> None:
    assert split_name("{http://schemas.android.com/tools}keep") == (
        "http://schemas.android.com/tools",
        "keep",
    )
    assert split_name("name") == (None, "name")
    assert is_analytics_file(Path("res/values/analytics.xml"))
    assert not is_analytics_file(Path("res/values/strings.xml"))


def test_markup_reference_adds_edge_from_whole_file_resource() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/layout/main.xml",
        ResourceFolderType.LAYOUT,
        """<LinearLayout NAMESPACES android:background="?attr/colorSurface">
            <ImageView android:src="@drawable/icon" android:tint="@android:color/white"/>
        </LinearLayout>""",
    )

    main = model.get_resource(ResourceType.LAYOUT, "main")
    assert main is not None and main.declared
    assert main.declarations == [Path("res/layout/main.xml")]
    assert _names(main.references) == ["@attr/colorSurface", "@drawable/icon"]
    icon = model.get_resource(ResourceType.DRAWABLE, "icon")
    assert icon is not None and not icon.declared


def test_ids_are_declarations_not_references() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/layout/form.xml",
        ResourceFolderType.LAYOUT,
        """<LinearLayout NAMESPACES>
            <Button android:id="@+id/submit" app:layout_constraintTop_toTopOf="@+id/header"/>
            <fragment android:id="@+id/map" android:name="com.example.MapFragment"/>
            <androidx.fragment.app.FragmentContainerView android:id="@+id/host"/>
        </LinearLayout>""",
    )

    form = model.get_resource(ResourceType.LAYOUT, "form")
    submit = model.get_resource(ResourceType.ID, "submit")
    header = model.get_resource(ResourceType.ID, "header")
    fragment_map = model.get_resource(ResourceType.ID, "map")
    host = model.get_resource(ResourceType.ID, "host")
    assert submit is not None and submit.declared and not submit.reachable
    assert form is not None and form.references == [header]
    assert fragment_map is not None and fragment_map.reachable
    assert host is not None and host.reachable


def test_data_binding_layout_ids_and_expressions() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/layout/bound.xml",
        ResourceFolderType.LAYOUT,
        """<layout NAMESPACES>
            <data><variable name="user" type="com.example.User"/></data>
            <TextView
                android:id="@+id/title"
                android:text="@{user.name ?? @string/fallback}"
                android:textColor="@{R.color.accent}"
                android:hint="@={BR.hint}"/>
        </layout>""",
    )

    bound = model.get_resource(ResourceType.LAYOUT, "bound")
    title = model.get_resource(ResourceType.ID, "title")
    assert title is not None and title.reachable and not title.declared
    assert bound is not None
    assert _names(bound.references) == ["@string/fallback", "@color/accent"]


def test_navigation_action_ids_and_destinations() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/navigation/nav_graph.xml",
        ResourceFolderType.NAVIGATION,
        """<navigation NAMESPACES app:startDestination="@id/home">
            <fragment android:id="@+id/home">
                <action android:id="@+id/to_detail" app:destination="@id/detail"/>
            </fragment>
            <fragment android:id="@+id/detail"/>
        </navigation>""",
    )

    graph = model.get_resource(ResourceType.NAVIGATION, "nav_graph")
    to_detail = model.get_resource(ResourceType.ID, "to_detail")
    home = model.get_resource(ResourceType.ID, "home")
    detail = model.get_resource(ResourceType.ID, "detail")
    assert to_detail is not None and to_detail.reachable
    assert home is not None and home.reachable and home.declared
    assert graph is not None and graph.references == [home, detail]


def test_constraint_referenced_ids_are_reachable() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/layout/flow.xml",
        ResourceFolderType.LAYOUT,
        """<ConstraintLayout NAMESPACES>
            <Flow app:constraint_referenced_ids="first, second"/>
        </ConstraintLayout>""",
    )

    for name in ("first", "second"):
        resource = model.get_resource(ResourceType.ID, name)
        assert resource is not None and resource.reachable


def test_code_reference_marks_reachable() -> None:
    model = ResourceUsageModel()
    model.tokenize_java_code("setContentView(R.layout.main); // R.layout.commented")
    model.tokenize_kotlin_code('val name = getString(R.string.app_name) + "R.string.quoted"')

    main = model.get_resource(ResourceType.LAYOUT, "main")
    app_name = model.get_resource(ResourceType.STRING, "app_name")
    assert main is not None and main.reachable
    assert app_name is not None and app_name.reachable
    assert model.get_resource(ResourceType.LAYOUT, "commented") is None
    assert model.get_resource(ResourceType.STRING, "quoted") is None


def test_values_declarations_styles_and_items() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/values/styles.xml",
        ResourceFolderType.VALUES,
        """<resources NAMESPACES>
            <style name="Theme.App" parent="Theme.Base">
                <item name="colorPrimary">@color/primary</item>
                <item name="android:windowBackground">@drawable/bg</item>
            </style>
            <style name="Theme.Base" parent="@android:style/Theme.Material"/>
            <style name="Theme.App.Dark"/>
            <item name="button" type="id"/>
            <public name="logo" type="drawable"/>
            <color name="primary">#ff0000</color>
        </resources>""",
    )

    app = model.get_resource(ResourceType.STYLE, "Theme.App")
    base = model.get_resource(ResourceType.STYLE, "Theme_Base")
    dark = model.get_resource(ResourceType.STYLE, "Theme.App.Dark")
    assert app is not None and base is not None and dark is not None
    assert app.declared and base.declared and dark.declared
    assert _names(app.references) == [
        "@style/Theme_Base",
        "@attr/colorPrimary",
        "@color/primary",
        "@drawable/bg",
    ]
    assert base.references == []
    assert _names(dark.references) == ["@style/Theme_App", "@style/Theme"]
    theme = model.get_resource(ResourceType.STYLE, "Theme")
    assert theme is not None and not theme.declared

    button = model.get_resource(ResourceType.ID, "button")
    logo = model.get_resource(ResourceType.DRAWABLE, "logo")
    primary = model.get_resource(ResourceType.COLOR, "primary")
    assert button is not None and button.declared
    assert logo is not None and logo.public and logo.declared
    assert primary is not None and primary.declared
    assert primary.declarations == [Path("res/values/styles.xml")]


def test_string_bodies_are_text_only() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/values/strings.xml",
        ResourceFolderType.VALUES,
        """<resources>
            <string name="name">Resusage</string>
            <string name="alias">@string/name</string>
            <string name="formatted">Hello <b>@string/bold</b> @string/name</string>
        </resources>""",
    )

    name = model.get_resource(ResourceType.STRING, "name")
    alias = model.get_resource(ResourceType.STRING, "alias")
    formatted = model.get_resource(ResourceType.STRING, "formatted")
    assert alias is not None and alias.references == [name]
    assert formatted is not None and formatted.references == [name]
    assert model.get_resource(ResourceType.STRING, "bold") is None


def test_analytics_values_file_is_skipped() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/values/analytics.xml",
        ResourceFolderType.VALUES,
        '<resources><string name="ga_trackingId">UA-1</string></resources>',
    )

    assert model.resources == []


def test_tools_directives_are_recorded_and_resolved() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/values/keep.xml",
        ResourceFolderType.VALUES,
        """<resources NAMESPACES
            tools:keep="@layout/used_*"
            tools:discard="@drawable/old"
            tools:shrinkMode="strict">
            <string name="unrelated">x</string>
        </resources>""",
    )
    for name in ("used_a", "used_b", "other"):
        model.add_declared_resource(ResourceType.LAYOUT, name)
    old = model.add_declared_resource(ResourceType.DRAWABLE, "old")
    old.reachable = True

    assert model.safe_mode is False
    assert model.store.keep_attributes == ["@layout/used_*"]

    model.resolve_directives()

    assert [r.name for r in model.resources if r.reachable] == ["used_a", "used_b"]
    assert old.discard and not old.reachable
    assert _names(model.find_unused()) == ["@string/unrelated", "@layout/other", "@drawable/old"]


def test_tools_attributes_on_elements_and_ignore_mode() -> None:
    layout = """<FrameLayout NAMESPACES tools:keep="@drawable/kept" tools:layout="@layout/preview"/>"""

    model = ResourceUsageModel()
    _visit(model, "res/layout/screen.xml", ResourceFolderType.LAYOUT, layout)
    screen = model.get_resource(ResourceType.LAYOUT, "screen")
    assert screen is not None
    assert _names(screen.references) == ["@drawable/kept", "@layout/preview"]

    ignoring = ResourceUsageModel(ignore_tools_attributes=True)
    _visit(ignoring, "res/layout/screen.xml", ResourceFolderType.LAYOUT, layout)
    screen = ignoring.get_resource(ResourceType.LAYOUT, "screen")
    assert screen is not None and screen.references == []
    assert ignoring.store.keep_attributes == ["@drawable/kept"]


def test_record_tools_attribute_by_qualified_name() -> None:
    model = ResourceUsageModel()
    model.record_tools_attribute("{http://schemas.android.com/tools}shrinkMode", "strict")
    model.record_tools_attribute("{http://schemas.android.com/apk/res/android}keep", "@layout/x")

    assert model.safe_mode is False
    assert model.store.keep_attributes == []

    model.record_shrink_mode_attribute("safe")
    assert model.safe_mode is True


def test_manifest_usages_are_roots() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "AndroidManifest.xml",
        None,
        """<manifest NAMESPACES package="com.example">
            <application android:icon="@mipmap/ic_launcher" android:theme="@style/AppTheme">
                <activity android:name=".Main" android:label="@string/app_name"
                    android:theme="@android:style/Theme.Translucent"/>
                <meta-data android:name="config">@xml/config</meta-data>
            </application>
        </manifest>""",
    )

    assert sorted(_names(model.resources)) == [
        "@mipmap/ic_launcher",
        "@string/app_name",
        "@style/AppTheme",
        "@xml/config",
    ]
    assert all(resource.reachable and not resource.declared for resource in model.resources)


def test_aapt_inline_resources_get_numbered_names() -> None:
    model = ResourceUsageModel()
    document = """<animated-vector NAMESPACES>
        <aapt:attr name="android:drawable"><vector android:width="24dp"/></aapt:attr>
        <target android:name="path">
            <aapt:attr name="android:animation"><objectAnimator/></aapt:attr>
        </target>
    </animated-vector>"""
    _visit(model, "res/drawable/avd.xml", ResourceFolderType.DRAWABLE, document)
    _visit(model, "res/drawable/avd_two.xml", ResourceFolderType.DRAWABLE, document)

    avd = model.get_resource(ResourceType.DRAWABLE, "avd")
    avd_two = model.get_resource(ResourceType.DRAWABLE, "avd_two")
    assert avd is not None and avd_two is not None
    assert [r.name for r in avd.references] == ["avd_1", "avd_2"]
    assert [r.name for r in avd_two.references] == ["avd_two_1", "avd_two_2"]


def test_wear_descriptor_and_xml_text_scan() -> None:
    model = ResourceUsageModel()
    model.visit_binary_resource(ResourceFolderType.RAW, Path("res/raw/wearable_app.apk"), content=b"")
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/bg.png"))
    _visit(
        model,
        "res/xml/wearable_app_desc.xml",
        ResourceFolderType.XML,
        """<wearableApp package="com.example.wear">
            <versionCode>1</versionCode>
            <rawPathResId>wearable_app</rawPathResId>
            <background url="file:///android_res/drawable/bg.png"/>
        </wearableApp>""",
    )

    descriptor = model.get_resource(ResourceType.XML, "wearable_app_desc")
    wearable = model.get_resource(ResourceType.RAW, "wearable_app")
    bg = model.get_resource(ResourceType.DRAWABLE, "bg")
    assert descriptor is not None and descriptor.references == [wearable]
    assert bg is not None and bg.reachable


def test_wear_descriptor_ignores_nested_element_text() -> None:
    model = ResourceUsageModel()
    model.visit_binary_resource(ResourceFolderType.RAW, Path("res/raw/wearable_app.apk"), content=b"")
    _visit(
        model,
        "res/xml/wearable_app_desc.xml",
        ResourceFolderType.XML,
        """<wearableApp package="com.example.wear">
            <rawPathResId>wearable_app<extra>ignored</extra></rawPathResId>
        </wearableApp>""",
    )

    descriptor = model.get_resource(ResourceType.XML, "wearable_app_desc")
    wearable = model.get_resource(ResourceType.RAW, "wearable_app")
    assert wearable is not None
    assert descriptor is not None and descriptor.references == [wearable]
    assert model.get_resource(ResourceType.RAW, "wearable_appignored") is None


def test_binary_resources_declare_whole_files() -> None:
    model = ResourceUsageModel()
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/button.9.png"))
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/.hidden.png"))
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/Thumbs.db"))
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/old.png~"))
    model.visit_binary_resource(ResourceFolderType.RAW, Path("res/raw/photo.png"), content=b"android_res/raw/x")

    assert _names(model.resources) == ["@drawable/button", "@raw/photo"]
    photo = model.get_resource(ResourceType.RAW, "photo")
    assert photo is not None and photo.references == []


def test_raw_web_content_references() -> None:
    model = RecordingModel()
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/bg.png"))
    model.visit_binary_resource(ResourceFolderType.RAW, Path("res/raw/other.html"), content=b"")
    model.visit_binary_resource(
        ResourceFolderType.RAW,
        Path("res/raw/intro.html"),
        content=(
            b'<html><body class="page"><img src="file:///android_res/drawable/bg.png">'
            b'<a href="other.html">next</a><a href="missing.html">gone</a>'
            b'<script>var title = "Intro";</script></body></html>'
        ),
    )
    model.visit_binary_resource(
        ResourceFolderType.RAW,
        Path("res/raw/theme.css"),
        content=b".bg { background: url('android_res/drawable/bg.png'); }",
    )

    intro = model.get_resource(ResourceType.RAW, "intro")
    theme = model.get_resource(ResourceType.RAW, "theme")
    assert intro is not None and _names(intro.references) == ["@drawable/bg", "@raw/other"]
    assert theme is not None and _names(theme.references) == ["@drawable/bg"]
    assert model.unresolved == ["missing.html", "Intro"]


def test_css_without_declaring_context_marks_reachable() -> None:
    model = ResourceUsageModel()
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/bg.png"))

    model.tokenize_css(None, ".bg { background: url('android_res/drawable/bg.png'); }")

    bg = model.get_resource(ResourceType.DRAWABLE, "bg")
    assert bg is not None and bg.reachable


def test_raw_binary_marker_references() -> None:
    model = ResourceUsageModel()
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable-hdpi/bg.png"))
    model.visit_binary_resource(
        ResourceFolderType.RAW,
        Path("res/raw/bundle.bin"),
        content=b"\x00\x01file:///android_res/drawable/bg.png\x00android_res/raw/intro.html",
    )

    bundle = model.get_resource(ResourceType.RAW, "bundle")
    assert bundle is not None
    assert _names(bundle.references) == ["@drawable/bg", "@raw/intro"]

    model.tokenize_unknown_binary(None, b"android_res/drawable/bg.webp")
    bg = model.get_resource(ResourceType.DRAWABLE, "bg")
    assert bg is not None and bg.reachable


def test_unused_report_end_to_end() -> None:
    model = ResourceUsageModel()
    _visit(
        model,
        "res/layout/main.xml",
        ResourceFolderType.LAYOUT,
        '<FrameLayout NAMESPACES android:background="@drawable/used"/>',
    )
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/used.png"))
    model.visit_binary_resource(ResourceFolderType.DRAWABLE, Path("res/drawable/unused.png"))
    _visit(
        model,
        "res/values/strings.xml",
        ResourceFolderType.VALUES,
        """<resources>
            <string name="google_app_id">1:2:3</string>
            <string name="kept">kept</string>
        </resources>""",
    )
    model.record_directive("keep", "@string/kept")
    model.tokenize_java_code("setContentView(R.layout.main);")

    model.resolve_directives()
    unused = model.find_unused()

    assert _names(unused) == ["@drawable/unused"]
    assert unused[0].declarations == [Path("res/drawable/unused.png")]
    assert "drawable/unused#remove\n" in model.dump_config()
    assert model.dump_keep_resources() == "kept"


def test_serialize_and_merge_models() -> None:
    model = ResourceUsageModel()
    model.add_resource(ResourceType.STRING, "hello", 0x7F0B0001).declared = True
    layout = model.add_declared_resource(ResourceType.LAYOUT, "main")
    layout.add_reference(model.get_resource_from_url("@string/hello"))

    restored = ResourceUsageModel.deserialize(model.serialize())
    hello = restored.get_resource_by_value(0x7F0B0001)
    assert hello is not None and hello.name == "hello"
    restored_layout = restored.get_resource(ResourceType.LAYOUT, "main")
    assert restored_layout is not None and restored_layout.references == [hello]

    other = ResourceUsageModel()
    other.add_declared_resource(ResourceType.COLOR, "accent")
    restored.merge(other)
    assert _names(restored.resources) == ["@layout/main", "@string/hello", "@color/accent"]
    assert model.get_resource_from_url("@android:string/ok") is None
    assert model.get_resource_from_file_path("res/string/hello") is not None
