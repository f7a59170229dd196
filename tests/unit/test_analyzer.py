from promptsmith.quality.analyzer import PromptAnalyzer, detect_language, detect_variables


def test_empty_prompt_is_maximally_ambiguous() -> None:
    result = PromptAnalyzer().analyze("")

    assert result.tokens == []
    assert result.complexity == 0.0
    assert result.ambiguity_score == 1.0
    assert result.readability_score == 0.0
    assert result.estimated_tokens == 0


def test_analysis_is_deterministic() -> None:
    analyzer = PromptAnalyzer()
    text = "Build a REST API with FastAPI and PostgreSQL 15 for user accounts."

    assert analyzer.analyze(text) == analyzer.analyze(text)


def test_technical_terms_and_entities() -> None:
    result = PromptAnalyzer().analyze("Build a REST API with FastAPI and PostgreSQL 15.")

    assert {"REST", "API", "FastAPI", "PostgreSQL"} <= set(result.technical_terms)
    labels = {entity.label for entity in result.entities}
    assert {"TECH_ACRONYM", "DATABASE", "NUMBER", "TECHNOLOGY"} <= labels


def test_intent_prefers_leading_keyword() -> None:
    result = PromptAnalyzer().analyze("Create a function that parses dates")

    assert result.intent.category == "create"
    assert "function" in result.intent.subcategories


def test_vague_terms_raise_ambiguity() -> None:
    analyzer = PromptAnalyzer()
    precise = analyzer.analyze("Create a users table with an email column")
    vague = analyzer.analyze("Make something nice and good with stuff")

    assert vague.ambiguity_score > precise.ambiguity_score
    assert precise.ambiguity_score == 0.0


def test_domain_hints_come_from_registry() -> None:
    result = PromptAnalyzer().analyze("Write a query against the orders database")

    assert "sql" in result.domain_hints


def test_variable_and_language_detection() -> None:
    assert detect_variables("Hello {{name}}")
    assert detect_variables("Total: $amount")
    assert not detect_variables("Plain text only")
    assert detect_language("hazme una bonita tabla") == "es"
    assert detect_language("Create the table for the users") == "en"


def test_complexity_is_capped() -> None:
    text = " ".join(["Implement PostgreSQL JSON API endpoint with OAuth2 and Docker."] * 40)

    assert PromptAnalyzer().analyze(text).complexity <= 1.0
