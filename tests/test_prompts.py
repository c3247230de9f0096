import logging

from autobom.prompts import CATEGORIES, DELIMITER, LENGTH_RULE, build_prompt


RATE_LIST = "Profile 45x90 - 450/m\nHinge - 120/nos"


def test_prompt_embeds_rate_list_and_description_verbatim():
    description = "Guarding for line 2, include {door} kit"
    prompt = build_prompt(RATE_LIST, description)

    assert f'{DELIMITER}\n{RATE_LIST}\n{DELIMITER}' in prompt
    assert f'{DELIMITER}\n{description}\n{DELIMITER}' in prompt
    assert prompt.index(RATE_LIST) < prompt.index(description)


def test_prompt_carries_categorization_and_length_rules():
    prompt = build_prompt(RATE_LIST, "")

    assert LENGTH_RULE in prompt
    for label in CATEGORIES:
        assert f'"{label}"' in prompt
    assert '"totalCost": number' in prompt


def test_prompt_uses_requested_currency():
    prompt = build_prompt(RATE_LIST, "notes", currency="USD")

    assert 'Currency should be "USD".' in prompt
    assert "market rate in **USD**" in prompt


def test_prompt_is_deterministic():
    assert build_prompt(RATE_LIST, "scope") == build_prompt(RATE_LIST, "scope")


def test_delimiter_in_user_text_is_kept_and_logged(caplog):
    caplog.set_level(logging.WARNING, logger="autobom.prompts")
    description = 'Label reads """ACME"""'

    prompt = build_prompt(RATE_LIST, description)

    assert description in prompt
    assert any("project description" in record.getMessage() for record in caplog.records)
