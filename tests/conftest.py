from pathlib import Path

import pytest

from hydrakit.config import Configuration
from hydrakit.context import Context
from hydrakit.loader import TemplateLoader
from hydrakit.template import TemplateEngine

from tests.infrastructure.file_utils import write_component


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Template tree: layout, page with partials, partials with nesting."""
    root = tmp_path / "templates"
    write_component(root, "layouts/main", (
        '<template><html><body class="{{theme_class}}">{{{content}}}</body></html></template>\n'
    ))
    write_component(root, "pages/home", (
        '<schema lang="js-zod" window="appState" layout="layouts/main">\n'
        "const schema = z.object({ user: z.object({}), items: z.array(z.string()) });\n"
        "</schema>\n"
        "<template>{{> partials/header}}<ul>{{#each items}}{{> partials/item}}{{/each}}</ul></template>\n"
    ))
    write_component(root, "partials/header", "<template><h1>Hello {{user.name}}</h1></template>\n")
    write_component(root, "partials/item", "<template><li>{{this}}</li></template>\n")
    return root


@pytest.fixture
def config(templates_dir: Path) -> Configuration:
    return Configuration(template_paths=(str(templates_dir),))


@pytest.fixture
def loader(config: Configuration) -> TemplateLoader:
    return TemplateLoader.from_config(config)


@pytest.fixture
def context(config: Configuration) -> Context:
    return Context.minimal(client={"user": {"name": "Ann"}, "items": ["a", "b"]}, config=config)


@pytest.fixture
def engine() -> TemplateEngine:
    return TemplateEngine()
