import pytest

from planvideo.core.errors import ValidationError
from planvideo.jobs.payloads import build, format_inr, get_strategy
from planvideo.schemas.render import FormInput


def _life_goal_form(**overrides) -> FormInput:
    values = {
        "template": "life_goal_maximizer",
        "user_name": "Asha",
        "child_name": "Mira",
        "amount": 100000,
        "tenure": 10,
        "client_age": 30,
    }
    values.update(overrides)
    return FormInput(**values)


def _layer_values(request) -> dict[str, str]:
    return {asset.layer_name: asset.value for asset in request.assets if asset.property == "Source Text"}


@pytest.mark.parametrize(
    "amount, expected",
    [(0, "₹0"), (999, "₹999"), (100000, "₹1,00,000"), (10069967, "₹1,00,69,967"), (2500.5, "₹2,500.5")],
)
def test_format_inr_uses_indian_grouping(amount: float, expected: str) -> None:
    assert format_inr(amount) == expected


def test_life_goal_payload_fills_every_layer_from_form() -> None:
    request = build(_life_goal_form())
    values = _layer_values(request)

    assert request.template.id == "01K38JV0SPGZJ8RH6RJ44Y57GW"
    assert request.template.composition == "MainComp"
    assert request.preview is False
    assert values["AnnualPremiumAmount"] == "₹1,00,000 p.a."
    assert values["PremiumTerm"] == "10 years"
    assert [values[f"ParentAge{index}"] for index in range(1, 5)] == ["45 years", "50 years", "57 years", "65 years"]
    assert [values[f"ChildAge{index}"] for index in range(1, 5)] == ["20 years", "25 years", "32 years", "40 years"]
    assert values["ParentName1"] == "Asha age:"
    assert values["ChildName4"] == "Mira age:"
    assert [values[f"Withdraw_{index}"] for index in range(1, 4)] == ["₹2,50,000", "₹1,00,000", "₹2,50,000"]
    assert values["MB_8per"] == "₹1,00,69,967"
    assert values["MB_4per"] == "₹17,95,988"


def test_give_and_get_payload_uses_plan_logo_and_totals() -> None:
    request = build(FormInput(template="give_and_get", plan="plan2", user_name="Ravi", amount=10000, tenure=5))
    images = [asset for asset in request.assets if asset.type == "image"]
    values = _layer_values(request)

    assert request.template.id == "01K2MFCW20CFAWHF5JZ96287FX"
    assert {asset.layer_name for asset in images} == {"BrandLogoSlide1", "BrandLogoSlide3"}
    assert all(asset.src.endswith("Logo_HDFC_Jeevan.png") for asset in images)
    assert values["CustomerName"] == "Welcome Ravi"
    assert values["GiveAmount"] == "₹10,000"
    assert values["GiveStatement"] == "Pay total ₹50,000 over the premium term of 5 years"
    assert values["GetAmount"] == "₹50,000"
    assert values["ThankYouName"] == "Ravi"


def test_unknown_plan_falls_back_to_default_logo() -> None:
    request = build(FormInput(template="give_and_get", plan="plan9", user_name="Ravi", amount=10000, tenure=5))
    assert request.assets[0].src.endswith("Logo_HDFC_Sanchay.png")


def test_build_is_deterministic_for_equal_input() -> None:
    assert build(_life_goal_form()) == build(_life_goal_form())


def test_payload_serializes_to_render_service_shape() -> None:
    payload = build(_life_goal_form(), preview=True).to_payload()

    assert payload["preview"] is True
    assert payload["fonts"] == ["Roboto_Condensed-Bold.ttf", "Roboto-BoldItalic.ttf", "Roboto-Bold.ttf"]
    assert payload["assets"][0] == {
        "type": "data",
        "layerName": "AnnualPremiumAmount",
        "property": "Source Text",
        "value": "₹1,00,000 p.a.",
    }


def test_image_assets_omit_text_fields_on_the_wire() -> None:
    payload = build(FormInput(template="give_and_get", plan="plan1", user_name="Ravi", amount=1, tenure=1)).to_payload()
    assert payload["assets"][0] == {
        "type": "image",
        "layerName": "BrandLogoSlide1",
        "src": "https://thezeist.com/wp-content/uploads/2025/08/Logo_HDFC_Sanchay.png",
    }


def test_form_preview_flag_overrides_default() -> None:
    assert build(_life_goal_form(preview=True), preview=False).preview is True


def test_form_accepts_camel_case_fields() -> None:
    form = FormInput.model_validate({"userName": "Asha", "childName": "Mira", "clientAge": 33})
    assert (form.user_name, form.child_name, form.client_age) == ("Asha", "Mira", 33)


@pytest.mark.parametrize(
    "overrides, missing",
    [
        ({"user_name": "  "}, "user_name"),
        ({"child_name": ""}, "child_name"),
        ({"amount": 0}, "amount"),
        ({"client_age": 0}, "client_age"),
    ],
)
def test_life_goal_payload_rejects_incomplete_form(overrides: dict, missing: str) -> None:
    with pytest.raises(ValidationError, match=missing):
        build(_life_goal_form(**overrides))


def test_give_and_get_requires_plan() -> None:
    with pytest.raises(ValidationError, match="plan"):
        build(FormInput(template="give_and_get", user_name="Ravi", amount=10000, tenure=5))


def test_life_goal_rejects_tenure_beyond_projection_horizon() -> None:
    with pytest.raises(ValidationError, match="tenure"):
        build(_life_goal_form(tenure=60))


def test_unknown_template_is_rejected() -> None:
    with pytest.raises(ValidationError, match="unknown template"):
        get_strategy("missing")
