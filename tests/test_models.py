"""Tests for the plan data model."""

from cinecompose.models import (
    CaptionStyle,
    CaptionUnit,
    CompositionPlan,
    EffectInstance,
    GenericParams,
    OverlayItem,
    Segment,
    ShakeParams,
    TransitionParams,
    ZoomParams,
    load_plan,
    make_params,
    params_to_dict,
    save_plan,
)


def _plan():
    return CompositionPlan(
        duration=12.0,
        captions=(CaptionUnit(
            id="caption_0", words=("OLHA", "ISSO"), start=0.0, end=0.8,
            word_timings=((0.0, 0.3), (0.35, 0.7)), emphasis=("OLHA",), emoji="🔥",
            style=CaptionStyle(font_size=64, position="center"), animation="karaoke",
        ),),
        effects=(
            EffectInstance("auto_zoom_0", "zoom-in", 0.0, 2.0, ZoomParams(scale=1.5)),
            EffectInstance("ai_effect_1", "sparkle", 3.0, 4.0, GenericParams({"n": 2})),
        ),
        overlays=(OverlayItem("b1", "b1", 5.0, 7.0, prompt="cidade"),),
        segments=(Segment("seg_0", 0.0, 12.0, "olha isso", preset="hook", keyword="olha"),),
        theme="ember",
        mood="calm",
    )


class TestMakeParams:
    def test_camel_case_aliases(self):
        assert make_params("zoom-out", {"focusX": 0.1, "focusY": 0.9}) == ZoomParams(focus_x=0.1, focus_y=0.9)

    def test_defaults_for_missing_and_bad(self):
        assert make_params("shake", {"intensity": "loud", "extra": 1}) == ShakeParams()

    def test_ints_become_floats(self):
        params = make_params("transition-fade", {"duration": 1})
        assert params == TransitionParams(duration=1.0)
        assert isinstance(params.duration, float)

    def test_bool_is_not_a_number(self):
        assert make_params("zoom-in", {"scale": True}).scale == 1.3

    def test_unknown_kind(self):
        assert make_params("sparkle", {"n": 2}) == GenericParams(values={"n": 2})

    def test_params_to_dict(self):
        assert params_to_dict(ZoomParams()) == {"scale": 1.3, "focus_x": 0.5, "focus_y": 0.4}
        assert params_to_dict(GenericParams({"n": 2})) == {"n": 2}


class TestEffectInstance:
    def test_active_inclusive(self):
        effect = EffectInstance("e", "flash", 1.0, 2.0)
        assert effect.is_active(1.0)
        assert effect.is_active(2.0)
        assert not effect.is_active(2.01)
        assert effect.duration == 1.0


class TestPlanSerialization:
    def test_dict_round_trip(self):
        plan = _plan()
        assert CompositionPlan.from_dict(plan.to_dict()) == plan

    def test_file_round_trip(self, tmp_path):
        plan = _plan()
        path = tmp_path / "out" / "plan.json"
        save_plan(plan, path)
        assert load_plan(path) == plan

    def test_caption_text(self):
        assert _plan().captions[0].text == "OLHA ISSO"

    def test_unknown_animation_defaults_to_pop(self):
        data = _plan().to_dict()
        data["captions"][0]["animation"] = "wiggle"
        assert CompositionPlan.from_dict(data).captions[0].animation == "pop"
