from services.metrics import estimate_usage


def test_estimates_floor_character_counts():
    usage = estimate_usage("p" * 10, "c" * 7)

    assert usage.prompt_tokens == 2
    assert usage.completion_tokens == 1
    # The total is computed on the combined length, not the sum of floors
    assert usage.total_tokens == 4


def test_empty_completion():
    usage = estimate_usage("abcd", "")

    assert (usage.prompt_tokens, usage.completion_tokens, usage.total_tokens) == (1, 0, 1)


def test_serialized_with_camel_case_keys():
    usage = estimate_usage("a" * 40, "b" * 80)

    assert usage.model_dump(by_alias=True) == {"promptTokens": 10, "completionTokens": 20, "totalTokens": 30}
