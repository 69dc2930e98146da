"""Tests for the YAML entity store."""

import pytest
import yaml

from devtask.domain import TaskItem
from devtask.errors import StoreError
from devtask.seed import build_sample_data
from devtask.services.report_builder import build_report
from devtask.storage import EntityYamlFormat, StoreContents


def _contents(entities):
    alice = entities["users"][0]
    return StoreContents(
        roles=list(alice.roles),
        users=entities["users"],
        projects=entities["projects"],
        tasks=entities["tasks"],
    )


class TestStorage:

    def test_missing_file_is_empty(self, storage):
        assert not storage.exists()
        contents = storage.load()

        assert contents.is_empty()
        assert storage.is_empty()

    def test_path_comes_from_config(self, storage, config):
        assert storage.path == config.get_store_path()

    def test_round_trip_keeps_relations(self, storage, entities):
        storage.save(_contents(entities))

        loaded = storage.load()

        assert [p.id for p in loaded.projects] == ["p1", "p2", "p3"]
        assert [t.id for t in loaded.tasks] == [f"t{i}" for i in range(1, 8)]
        large = loaded.projects[2]
        alice = loaded.users[0]
        assert [t.id for t in large.tasks] == ["t3", "t4", "t5", "t6", "t7"]
        assert [u.id for u in large.users] == ["u1", "u2"]
        assert [t.id for t in alice.tasks] == ["t3", "t4", "t5", "t6"]
        assert loaded.tasks[2].assigned_user is alice
        assert loaded.tasks[2].project is large

    def test_round_trip_keeps_values(self, storage, entities, now):
        original = entities["tasks"][0]
        original.add_item(TaskItem("Review wireframes", priority=1, completed_at=now))
        storage.save(_contents(entities))

        task = storage.load().tasks[0]

        assert task.name == original.name
        assert task.type == "Design"
        assert task.status == "Completed"
        assert task.created == original.created
        assert task.completed_at == original.completed_at
        assert task.assigned_user is None
        assert task.items[0].description == "Review wireframes"
        assert task.items[0].parent is task

    def test_roles_are_shared_by_name(self, storage, now):
        storage.save(build_sample_data(now))

        loaded = storage.load()

        developers = [u for u in loaded.users if "Developer" in u.role_names]
        assert len(developers) == 2
        assert developers[0].roles[0] is developers[1].roles[0]

    def test_save_replaces_file(self, storage, entities):
        storage.save(_contents(entities))
        storage.save(StoreContents())

        assert storage.load().is_empty()
        assert not storage.path.with_suffix(".yaml.tmp").exists()

    def test_unparseable_yaml_raises(self, storage):
        storage.path.parent.mkdir(parents=True, exist_ok=True)
        storage.path.write_text("projects: [unclosed\n", encoding="utf-8")

        with pytest.raises(StoreError):
            storage.load()

    def test_non_mapping_document_raises(self, storage):
        storage.path.parent.mkdir(parents=True, exist_ok=True)
        storage.path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(StoreError):
            storage.load()

    def test_unknown_reference_raises(self, storage):
        storage.path.parent.mkdir(parents=True, exist_ok=True)
        storage.path.write_text(yaml.safe_dump({
            "tasks": [{"id": "t1", "name": "Orphan", "project": "missing"}],
        }), encoding="utf-8")

        with pytest.raises(StoreError, match="Unknown project reference: missing"):
            storage.load()


class TestEntityYamlFormat:

    def test_missing_id_is_malformed(self):
        with pytest.raises(StoreError, match="Malformed"):
            EntityYamlFormat.load({"users": [{"first_name": "No", "last_name": "Id"}]})

    def test_defaults_for_missing_fields(self):
        contents = EntityYamlFormat.load({"tasks": [{"id": 7}]})
        task = contents.tasks[0]

        assert task.id == "7"
        assert task.name == ""
        assert task.project is None
        assert task.created.year == 1970

    def test_dump_stores_relations_as_ids(self, entities):
        document = EntityYamlFormat.dump(StoreContents(
            projects=entities["projects"], tasks=entities["tasks"],
        ))

        assert document["projects"][2]["members"] == ["u1", "u2"]
        assert document["tasks"][2]["project"] == "p3"
        assert document["tasks"][2]["assigned_user"] == "u1"
        assert document["tasks"][0]["assigned_user"] is None

    def test_null_text_fields_load_as_empty(self, now):
        contents = EntityYamlFormat.load({
            "users": [{"id": "u1", "first_name": None, "last_name": "Solo"}],
            "projects": [{"id": "p1", "title": None, "description": None}],
            "tasks": [{
                "id": "t1", "name": None, "status": None, "priority": None,
                "project": "p1", "assigned_user": "u1",
                "items": [{"description": None}],
            }],
        })

        assert contents.users[0].first_name == ""
        assert contents.projects[0].title == ""
        assert contents.tasks[0].name == ""
        assert contents.tasks[0].status == ""
        assert contents.tasks[0].items[0].description == ""

        report = build_report(contents.projects, contents.users, contents.tasks, now)
        assert report.detailed_tasks[0].name == "Untitled Task"
        assert report.detailed_tasks[0].project_name == "Untitled Project"
        assert report.detailed_projects[0].title == "Untitled Project"

    def test_numeric_text_fields_are_stringified(self):
        contents = EntityYamlFormat.load({"tasks": [{"id": "t1", "name": 2026, "priority": 1}]})

        assert contents.tasks[0].name == "2026"
        assert contents.tasks[0].priority == "1"

    @pytest.mark.parametrize("document", [
        {"tasks": ["just a string"]},
        {"users": [42]},
        {"projects": [None]},
        {"roles": [["admin"]]},
        {"tasks": [{"id": "t1", "items": ["loose item"]}]},
        {"tasks": "not a list"},
    ])
    def test_non_mapping_records_are_malformed(self, document):
        with pytest.raises(StoreError, match="Malformed store document"):
            EntityYamlFormat.load(document)
