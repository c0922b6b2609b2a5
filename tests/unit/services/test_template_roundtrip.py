"""模板保存与加载的随机场景测试.

用固定种子生成包含各类元素的画布，经三种存储保存再加载后，
画布内容应与保存前完全一致。
"""

import random

import pytest
from PIL import Image

from card_designer.core.card_designer import CardDesigner
from card_designer.models.card_dimensions import list_presets
from card_designer.models.card_elements import (
    BackgroundImage,
    FontStyle,
    FontWeight,
    ImageElement,
    OriginX,
    OriginY,
    TextAlign,
    TextBoxElement,
    TextElement,
)
from card_designer.services.database_service import DatabaseService
from card_designer.services.template_repository import TemplateRepository
from card_designer.services.template_store import (
    InMemoryTemplateStore,
    JsonFileTemplateStore,
    SqlTemplateStore,
)
from card_designer.utils.image_utils import image_to_data_url

SEEDS = [0, 1, 7, 42, 2024]
WORDS = ["Goblin", "攻击力", "Fire", "卡牌", "shield", "+3", "Élan", ""]


def _color(rng: random.Random) -> str:
    return "#{:02x}{:02x}{:02x}".format(rng.randrange(256), rng.randrange(256), rng.randrange(256))


def _content(rng: random.Random) -> str:
    lines = [" ".join(rng.choice(WORDS) for _ in range(rng.randint(1, 5))) for _ in range(rng.randint(1, 3))]
    return "\n".join(lines)


def _text_style(rng: random.Random) -> dict:
    return {
        "x": rng.uniform(-50, 300),
        "y": rng.uniform(-50, 400),
        "origin_x": rng.choice(list(OriginX)),
        "origin_y": rng.choice(list(OriginY)),
        "content": _content(rng),
        "font_family": rng.choice(["Arial", "Roboto", "Noto Sans SC", "Pirata One"]),
        "font_size": rng.randint(1, 400),
        "font_weight": rng.choice(list(FontWeight)),
        "font_style": rng.choice(list(FontStyle)),
        "fill_color": _color(rng),
        "text_align": rng.choice(list(TextAlign)),
        "line_height": round(rng.uniform(0.5, 5.0), 3),
    }


def _image_src(rng: random.Random) -> str:
    if rng.random() < 0.5:
        return f"images/art-{rng.randrange(1000)}.png"
    size = (rng.randint(1, 6), rng.randint(1, 6))
    return image_to_data_url(Image.new("RGBA", size, (rng.randrange(256), 0, 0, 255)))


def _random_element(rng: random.Random):
    kind = rng.choice(["text", "textbox", "image"])
    if kind == "text":
        return TextElement(**_text_style(rng))
    if kind == "textbox":
        return TextBoxElement(wrap_width=rng.uniform(1, 500), **_text_style(rng))
    return ImageElement(
        x=rng.uniform(-50, 300),
        y=rng.uniform(-50, 400),
        origin_x=rng.choice(list(OriginX)),
        origin_y=rng.choice(list(OriginY)),
        src=_image_src(rng),
        natural_width=rng.randint(1, 5000),
        natural_height=rng.randint(1, 5000),
        render_scale=rng.uniform(0.001, 50),
    )


def _populate(session: CardDesigner, rng: random.Random) -> None:
    session.change_dimension(rng.choice(list_presets()), confirm=False)
    for _ in range(rng.randint(0, 12)):
        session.document.append_element(_random_element(rng))
    if rng.random() < 0.7:
        session.document.set_background(
            BackgroundImage(
                src=_image_src(rng),
                natural_width=rng.randint(1, 5000),
                natural_height=rng.randint(1, 5000),
                render_scale=rng.uniform(0.001, 50),
            )
        )


@pytest.fixture(params=["memory", "file", "sqlite"])
def store(request, tmp_path):
    """三种模板存储实现."""
    if request.param == "memory":
        store = InMemoryTemplateStore()
    elif request.param == "file":
        store = JsonFileTemplateStore(tmp_path / "templates")
    else:
        store = SqlTemplateStore(DatabaseService(tmp_path / "templates.db"))
    yield store
    store.close()


class TestTemplateRoundTrip:
    """随机场景保存后加载测试类."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_save_then_load_restores_scene(self, store, renderer, font_registry, seed):
        """测试随机画布经存储保存再加载后完全一致."""
        rng = random.Random(seed)
        repository = TemplateRepository(store)
        source = CardDesigner(repository=repository, renderer=renderer, font_registry=font_registry)
        source.mount()
        _populate(source, rng)
        expected_dimension = source.document.dimension
        expected = source.document.to_snapshot()

        saved = source.save_template(f"Random {seed}")

        target = CardDesigner(repository=repository, renderer=renderer, font_registry=font_registry)
        target.mount()
        target.load_template(saved.id)

        assert target.document.dimension == expected_dimension
        restored = target.document.to_snapshot()
        assert len(restored.elements) == len(expected.elements)
        assert restored.background == expected.background
        for before, after in zip(expected.elements, restored.elements):
            assert after.kind == before.kind
            assert (after.x, after.y, after.origin_x, after.origin_y) == (
                before.x,
                before.y,
                before.origin_x,
                before.origin_y,
            )
            assert after.model_dump() == before.model_dump()
        assert restored == expected

    @pytest.mark.parametrize("seed", SEEDS[:2])
    def test_list_keeps_save_order(self, store, document, seed):
        """测试多次保存后按保存顺序列出."""
        rng = random.Random(seed)
        repository = TemplateRepository(store)
        names = [f"T{rng.randrange(3)}" for _ in range(6)]

        saved = [repository.save(name, document) for name in names]

        assert [t.id for t in repository.list()] == [t.id for t in saved]
