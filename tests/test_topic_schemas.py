import pytest
from pydantic import ValidationError

from refresher_api.modules.topics.schemas import TopicCreate, TopicListQuery, TopicUpdate


def _link(n=1, **overrides):
    link = {"title": f"Problem {n}", "url": f"https://leetcode.com/problems/p-{n}/", "difficulty": "Easy"}
    link.update(overrides)
    return link


def _error_fields(exc_info):
    return [".".join(str(p) for p in e["loc"]) for e in exc_info.value.errors()]


def test_empty_update_rejected():
    with pytest.raises(ValidationError) as exc_info:
        TopicUpdate.model_validate({})
    assert exc_info.value.errors()[0]["msg"] == "At least one field must be provided for update"


def test_unknown_key_rejected():
    with pytest.raises(ValidationError) as exc_info:
        TopicUpdate.model_validate({"title": "Generators", "user_id": "someone-else"})
    assert _error_fields(exc_info) == ["user_id"]


def test_only_unknown_keys_rejected():
    with pytest.raises(ValidationError):
        TopicUpdate.model_validate({"owner": "x"})


def test_update_fields_only_contain_sent_keys():
    update = TopicUpdate.model_validate({"status": "completed"})
    assert update.to_update_fields() == {"status": "completed"}


def test_description_can_be_cleared_with_null():
    update = TopicUpdate.model_validate({"description": None})
    assert update.to_update_fields() == {"description": None}


@pytest.mark.parametrize("field", ["title", "status", "technology", "leetcode_links"])
def test_null_rejected_for_required_columns(field):
    with pytest.raises(ValidationError) as exc_info:
        TopicUpdate.model_validate({field: None})
    assert _error_fields(exc_info) == [field]


def test_title_length_bounds():
    TopicUpdate.model_validate({"title": "x" * 200})
    with pytest.raises(ValidationError):
        TopicUpdate.model_validate({"title": "x" * 201})
    with pytest.raises(ValidationError):
        TopicUpdate.model_validate({"title": ""})


def test_description_length_bound():
    TopicUpdate.model_validate({"description": "d" * 1000})
    with pytest.raises(ValidationError):
        TopicUpdate.model_validate({"description": "d" * 1001})


def test_invalid_status_rejected():
    with pytest.raises(ValidationError) as exc_info:
        TopicUpdate.model_validate({"status": "done"})
    assert _error_fields(exc_info) == ["status"]


@pytest.mark.parametrize("technology", ["React", "Node.js", "Vue 3", "ruby_on-rails"])
def test_technology_charset_accepted(technology):
    assert TopicUpdate.model_validate({"technology": technology}).technology == technology


def test_technology_with_symbols_rejected():
    with pytest.raises(ValidationError) as exc_info:
        TopicUpdate.model_validate({"technology": "C++!!"})
    error = exc_info.value.errors()[0]
    assert error["loc"] == ("technology",)
    assert "alphanumeric" in error["msg"]


def test_technology_too_long_rejected():
    with pytest.raises(ValidationError):
        TopicUpdate.model_validate({"technology": "a" * 101})


def test_at_most_five_links():
    TopicUpdate.model_validate({"leetcode_links": [_link(i) for i in range(5)]})
    with pytest.raises(ValidationError) as exc_info:
        TopicUpdate.model_validate({"leetcode_links": [_link(i) for i in range(6)]})
    assert _error_fields(exc_info) == ["leetcode_links"]


def test_link_url_kept_as_sent():
    url = "https://leetcode.com/problems/two-sum"
    update = TopicUpdate.model_validate({"leetcode_links": [_link(url=url)]})
    assert update.to_update_fields()["leetcode_links"][0]["url"] == url


def test_link_requires_valid_url_and_difficulty():
    with pytest.raises(ValidationError) as exc_info:
        TopicUpdate.model_validate({
            "leetcode_links": [_link(url="not a url"), _link(2, difficulty="Extreme")]
        })
    assert sorted(_error_fields(exc_info)) == ["leetcode_links.0.url", "leetcode_links.1.difficulty"]


def test_create_defaults():
    topic = TopicCreate.model_validate({"title": "Event loop", "technology": "Node.js"})
    assert topic.model_dump(mode="json") == {
        "title": "Event loop",
        "technology": "Node.js",
        "parent_id": None,
        "description": None,
        "status": "to_do",
        "leetcode_links": [],
    }


def test_create_requires_title_and_technology():
    with pytest.raises(ValidationError) as exc_info:
        TopicCreate.model_validate({})
    assert sorted(_error_fields(exc_info)) == ["technology", "title"]


def test_list_query_defaults_and_root_filter():
    query = TopicListQuery.model_validate({"parent_id": "null"})
    assert query.parent_id == "null"
    assert (query.sort, query.order, query.page, query.limit) == ("created_at", "desc", 1, 50)
    assert query.offset == 0


@pytest.mark.parametrize("params", [{"limit": 101}, {"page": 0}, {"sort": "technology"}, {"parent_id": "abc"}])
def test_list_query_rejects_out_of_range(params):
    with pytest.raises(ValidationError):
        TopicListQuery.model_validate(params)
