from app.ai.parsers import ProjectIdeaParser, StartupNameParser, clean_line, strip_label


def test_clean_line_and_strip_label():
    assert clean_line("## **Name:** Foo") == "Name: Foo"
    assert strip_label("Tech Stack: React") == "React"


def test_project_ideas_with_labels():
    raw = (
        "Project 1: Habit Coach\n"
        "Description: Builds daily habits.\n"
        "Key Features: streaks\n"
        "- Reminders\n"
        "Technologies: Django\n"
        "Advanced: Social challenges\n"
        "Project 2: Recipe Box\n"
        "Saves recipes from any site.\n"
    )
    ideas = ProjectIdeaParser(expected_count=3, technology="Django").parse(raw)
    assert len(ideas) == 2
    first = ideas[0]
    assert first.name == "Habit Coach"
    assert first.description == "Builds daily habits."
    assert first.features == ["streaks", "Reminders"]
    assert first.tech_stack == "Django"
    assert first.bonus_feature == "Social challenges"
    assert ideas[1].name == "Recipe Box"
    assert ideas[1].description == "Saves recipes from any site."


def test_project_ideas_truncated_to_expected_count():
    raw = "1. One\n2. Two\n3. Three\n"
    ideas = ProjectIdeaParser(expected_count=2).parse(raw)
    assert [idea.name for idea in ideas] == ["One", "Two"]


def test_project_ideas_fallback():
    ideas = ProjectIdeaParser(expected_count=3, technology="Go").parse("")
    assert len(ideas) == 1
    assert ideas[0].name == "Generated Project"
    assert ideas[0].tech_stack == "Go"


def test_startup_names_skip_preamble():
    raw = (
        "Here are some names for you:\n"
        "1. **Brightpath**\n"
        "   - Meaning: a clear way forward\n"
        "   - Brand positioning: Trustworthy guide\n"
        "   - Tagline: Find your way\n"
        "   - Domain: brightpath.io\n"
        "2. Nimbly\n"
        "   - Origin: nimble\n"
    )
    names = StartupNameParser().parse(raw)
    assert [n.name for n in names] == ["Brightpath", "Nimbly"]
    assert names[0].meaning == "a clear way forward"
    assert names[0].positioning == "Trustworthy guide"
    assert names[0].tagline == "Find your way"
    assert names[0].domain_style == "brightpath.io"
    assert names[1].meaning == "nimble"


def test_startup_names_fallback():
    names = StartupNameParser().parse("No list here at all")
    assert len(names) == 1
    assert names[0].name == "Generated Name"
    assert names[0].meaning == "No list here at all"
