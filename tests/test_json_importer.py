"""
Tests for JsonImporter
"""
import json

import pytest
from sqlalchemy.exc import IntegrityError
from stubs import HOOK_CALLS, Bar, Baz, DoNotExport, Foo, HookedFoo

from json_syncer.core.exceptions import (DecodingError, RelationShapeError,
                                         UndeclaredRelationError,
                                         UnknownAttributeError)
from json_syncer.core.import_mode import is_importing
from json_syncer.services.json_importer import JsonImporter, import_from_json


def assert_foo_is_imported(db):
    assert db.query(Foo).count() == 1
    assert db.query(Foo).first().to_dict() == {
        "id": 1, "author": "Mathieu TUDISCO", "username": "@mathieutu"
    }


def assert_bars_are_imported(db):
    assert db.query(Bar).count() == 2
    bars = db.query(Foo).first().bars
    assert [bar.to_dict() for bar in bars] == [
        {"id": 1, "name": "bar1", "foo_id": 1},
        {"id": 2, "name": "bar2", "foo_id": 1},
    ]


def assert_bazs_are_imported(db):
    assert db.query(Baz).count() == 2
    for bar in db.query(Foo).first().bars:
        baz = bar.baz
        assert baz.to_dict() == {"id": baz.id, "name": f"{bar.name}_baz", "bar_id": bar.id}


def assert_all_imported(db):
    assert_foo_is_imported(db)
    assert_bars_are_imported(db)
    assert_bazs_are_imported(db)
    assert db.query(DoNotExport).count() == 0


def test_import_from_json_text(db, import_json):
    """Test importing a JSON document given as text"""
    foo = JsonImporter(db).import_tree(Foo, import_json)

    assert isinstance(foo, Foo)
    assert_all_imported(db)


def test_import_from_decoded_dict(db, import_data):
    """Test importing an already decoded document"""
    JsonImporter(db).import_tree(Foo, import_data)

    assert_all_imported(db)


def test_import_by_entity_name(db, import_data):
    """Test the root type can be given by its registered name"""
    JsonImporter(db).import_tree("Foo", import_data)

    assert_all_imported(db)


def test_import_returns_instance_with_loadable_relations(db, import_data):
    """Test the returned root exposes the created children"""
    foo = JsonImporter(db).import_tree(Foo, import_data)

    assert foo.id is not None
    assert [bar.name for bar in foo.bars] == ["bar1", "bar2"]
    assert all(bar.foo_id == foo.id for bar in foo.bars)
    assert [bar.baz.name for bar in foo.bars] == ["bar1_baz", "bar2_baz"]


def test_import_array_payload(db, import_data):
    """Test an array root creates one root entity per element"""
    foos = JsonImporter(db).import_tree(Foo, [import_data, {"author": "Other"}])

    assert isinstance(foos, list)
    assert [foo.author for foo in foos] == ["Mathieu TUDISCO", "Other"]
    assert db.query(Foo).count() == 2
    assert db.query(Bar).count() == 2
    assert foos[1].bars == []


def test_import_without_relation(db, import_data):
    """Test an absent relation key creates no child"""
    del import_data["bars"][1]["baz"]

    JsonImporter(db).import_tree(Foo, import_data)

    assert_foo_is_imported(db)
    assert_bars_are_imported(db)
    assert db.query(Baz).count() == 1
    bazs = [bar.baz for bar in db.query(Foo).first().bars]
    assert bazs[0].to_dict() == {"id": 1, "name": "bar1_baz", "bar_id": 1}
    assert bazs[1] is None


def test_import_with_null_singular_relation(db, import_data):
    """Test a null singular relation creates no child"""
    import_data["bars"][1]["baz"] = None

    JsonImporter(db).import_tree(Foo, import_data)

    assert db.query(Bar).count() == 2
    assert db.query(Baz).count() == 1


def test_import_with_an_empty_relation(db, import_data):
    """Test an empty plural relation creates no children"""
    import_data["bars"] = []

    JsonImporter(db).import_tree(Foo, json.dumps(import_data))

    assert db.query(Foo).count() == 1
    assert db.query(Bar).count() == 0
    assert db.query(Baz).count() == 0
    assert db.query(DoNotExport).count() == 0


def test_import_with_null_plural_relation(db, import_data):
    """Test a null plural relation behaves like an empty one"""
    import_data["bars"] = None

    JsonImporter(db).import_tree(Foo, import_data)

    assert db.query(Foo).count() == 1
    assert db.query(Bar).count() == 0


def test_import_several_times_will_just_add(db, import_data):
    """Test repeated imports create new, independent entities"""
    importer = JsonImporter(db)
    importer.import_tree(Foo, import_data)

    foo_count = db.query(Foo).count()
    bar_count = db.query(Bar).count()
    baz_count = db.query(Baz).count()

    for time in range(1, 4):
        assert db.query(Foo).count() == time * foo_count
        assert db.query(Bar).count() == time * bar_count
        assert db.query(Baz).count() == time * baz_count
        assert db.query(DoNotExport).count() == 0

        importer.import_tree(Foo, import_data)


def test_import_bad_json(db):
    """Test invalid JSON text is rejected before anything is persisted"""
    with pytest.raises(DecodingError):
        JsonImporter(db).import_tree(Foo, "badJson")

    assert db.query(Foo).count() == 0


def test_import_unwanted_data_at_root(db, import_data):
    """Test an unknown root key names the key and the type"""
    import_data["bad"] = "attribute"

    with pytest.raises(UnknownAttributeError) as exc_info:
        JsonImporter(db).import_tree(Foo, import_data)

    assert exc_info.value.key == "bad"
    assert str(exc_info.value) == 'Unknown attribute or relation "bad" in "stubs.Foo".'
    assert db.query(Foo).count() == 0


def test_import_unwanted_data_nested(db, import_data):
    """Test an unknown key deep in the tree is rejected too"""
    import_data["bars"][1]["baz"]["bogus"] = 1

    with pytest.raises(UnknownAttributeError, match='"bogus" in "stubs.Baz"'):
        JsonImporter(db).import_tree(Foo, import_data)


def test_nodes_before_failure_stay_persisted(db, import_data):
    """Test a failing node does not roll back the nodes created before it"""
    import_data["bars"][1]["bogus"] = 1

    with pytest.raises(UnknownAttributeError):
        JsonImporter(db, atomic=False).import_tree(Foo, import_data)

    assert db.query(Foo).count() == 1
    assert db.query(Bar).count() == 1
    assert db.query(Baz).count() == 1


def test_atomic_import_rolls_back_on_failure(db, import_data):
    """Test an atomic import leaves nothing behind when a nested node fails"""
    import_data["bars"][1]["bogus"] = 1

    with pytest.raises(UnknownAttributeError):
        JsonImporter(db, atomic=True).import_tree(Foo, import_data)

    assert db.query(Foo).count() == 0
    assert db.query(Bar).count() == 0
    assert db.query(Baz).count() == 0


def test_atomic_import(db, import_data):
    """Test an atomic import creates the same tree"""
    foo = JsonImporter(db, atomic=True).import_tree(Foo, import_data)

    assert_all_imported(db)
    assert [bar.name for bar in foo.bars] == ["bar1", "bar2"]


def test_import_non_relation_key_with_custom_relations(db, import_data):
    """Test a relation override naming a non-relation is rejected"""
    import_data["otherMethod"] = []

    with pytest.raises(UndeclaredRelationError, match='"otherMethod"'):
        JsonImporter(db).import_tree(Foo, import_data, relations=["bars", "otherMethod"])

    assert db.query(Foo).count() == 0


def test_import_with_custom_relations_and_attributes(db, import_data):
    """Test overrides replace the root defaults but not the children's"""
    del import_data["username"]

    JsonImporter(db).import_tree(Foo, import_data, relations=["bars"], attributes=["author"])

    assert db.query(Foo).first().to_dict() == {"id": 1, "author": "Mathieu TUDISCO", "username": None}
    assert_bars_are_imported(db)
    assert_bazs_are_imported(db)


def test_attribute_override_is_not_merged(db, import_data):
    """Test a default attribute left out of the override becomes unknown"""
    with pytest.raises(UnknownAttributeError, match='"username"'):
        JsonImporter(db).import_tree(Foo, import_data, attributes=["author"])


def test_empty_relation_override_rejects_relations(db, import_data):
    """Test an empty relation override disables every relation"""
    with pytest.raises(UnknownAttributeError, match='"bars"'):
        JsonImporter(db).import_tree(Foo, import_data, relations=[])


def test_overrides_do_not_propagate_to_children(db):
    """Test children keep their own defaults when the root is restricted"""
    payload = {"author": "a", "bars": [{"name": "bar", "baz": {"name": "baz"}}]}

    JsonImporter(db).import_tree(Foo, payload, attributes=["author"], relations=["bars"])

    bar = db.query(Bar).one()
    assert bar.name == "bar"
    assert bar.baz.name == "baz"


def test_import_non_importable_objects(db):
    """Test a relation outside the type's importable subset is rejected"""
    with pytest.raises(UnknownAttributeError, match='"do_nots" in "stubs.Baz"'):
        JsonImporter(db).import_tree(Baz, {"name": "baz_test", "do_nots": [{"name": "Do not import !"}]})

    assert db.query(DoNotExport).count() == 0


def test_plural_relation_given_an_object(db):
    """Test the declared arity wins over the JSON shape"""
    with pytest.raises(RelationShapeError, match="array of objects"):
        JsonImporter(db).import_tree(Foo, {"author": "a", "bars": {"name": "bar"}})


def test_singular_relation_given_an_array(db):
    payload = {"author": "a", "bars": [{"name": "bar", "baz": [{"name": "baz"}]}]}

    with pytest.raises(RelationShapeError, match="an object or null"):
        JsonImporter(db).import_tree(Foo, payload)

    assert db.query(Baz).count() == 0


def test_plural_relation_with_scalar_element(db):
    with pytest.raises(RelationShapeError, match="element of type int"):
        JsonImporter(db).import_tree(Foo, {"author": "a", "bars": [1]})


def test_is_importing_in_attribute_hook(db):
    """Test attribute hooks see import mode only while importing"""
    hooked = HookedFoo()
    hooked.author = "test"
    assert hooked.author == "not importing"
    assert HOOK_CALLS == [(hooked, False)]

    imported = JsonImporter(db).import_tree(HookedFoo, {"author": "Mathieu"})

    assert imported.author == "Mathieu"
    assert HOOK_CALLS[-1] == (imported, True)
    assert not imported.is_importing()


def test_import_mode_cleared_after_hook_failure(db):
    """Test a failing hook does not leave the instance in import mode"""
    with pytest.raises(ValueError, match="explode"):
        JsonImporter(db).import_tree(HookedFoo, {"author": "explode"})

    instance, was_importing = HOOK_CALLS[-1]
    assert was_importing
    assert not is_importing(instance)


def test_import_mode_cleared_when_later_sibling_fails(db):
    """Test import mode is released for every instance before a sibling fails"""
    with pytest.raises(UnknownAttributeError):
        JsonImporter(db).import_tree(HookedFoo, [{"author": "first"}, {"author": "second", "bogus": 1}])

    assert len(HOOK_CALLS) == 1
    first, was_importing = HOOK_CALLS[0]
    assert was_importing
    assert not is_importing(first)
    assert db.query(HookedFoo).count() == 1


def test_excluded_attribute_is_not_importable(db):
    """Test attributes excluded from import are rejected"""
    with pytest.raises(UnknownAttributeError, match='"secret"'):
        JsonImporter(db).import_tree(HookedFoo, {"author": "a", "secret": "s"})


def test_excluded_attribute_importable_with_override(db):
    """Test an explicit override can accept an excluded attribute"""
    hooked = JsonImporter(db).import_tree(HookedFoo, {"secret": "s"}, attributes=["secret"])

    assert hooked.secret == "s"
    assert hooked.author is None


def test_import_from_json_helper(db, import_json):
    """Test the module-level helper opens its own session"""
    foo = import_from_json(Foo, import_json)

    assert foo.author == "Mathieu TUDISCO"
    assert_all_imported(db)


def test_attribute_override_naming_unknown_attribute(db):
    """Test an attribute override must only name plain attributes of the root type"""
    with pytest.raises(UnknownAttributeError) as exc_info:
        JsonImporter(db).import_tree(Foo, {"author": "a"}, attributes=["author", "nope"])

    assert exc_info.value.key == "nope"
    assert db.query(Foo).count() == 0


@pytest.mark.parametrize("atomic", [False, True])
def test_session_usable_after_database_error(db, atomic):
    """Test a failed flush leaves the session ready for the next import"""
    with pytest.raises(IntegrityError):
        JsonImporter(db, atomic=atomic).import_tree(Bar, {"name": "orphan"})

    foo = JsonImporter(db, atomic=atomic).import_tree(Foo, {"author": "a"})

    assert foo.author == "a"
    assert db.query(Foo).count() == 1
    assert db.query(Bar).count() == 0
