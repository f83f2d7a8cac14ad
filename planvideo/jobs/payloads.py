from __future__ import annotations

from abc import ABC, abstractmethod

from planvideo.core.errors import ValidationError
from planvideo.jobs.projection import HORIZON_YEARS, project
from planvideo.schemas.render import FormInput, RenderAsset, RenderRequest, TemplateRef

SOURCE_TEXT = "Source Text"
AGE_OFFSETS = (15, 20, 27, 35)
DEFAULT_CHILD_AGE = 5


def format_inr(amount: float) -> str:
    """Format an amount with a rupee sign and Indian digit grouping (1,00,000)."""
    sign = "-" if amount < 0 else ""
    whole, _, fraction = f"{abs(amount):.2f}".partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups: list[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join([*groups, tail])
    fraction = fraction.rstrip("0")
    return f"{sign}₹{whole}.{fraction}" if fraction else f"{sign}₹{whole}"


def text_asset(layer_name: str, value: str, *, property: str = SOURCE_TEXT) -> RenderAsset:
    return RenderAsset(type="data", layer_name=layer_name, property=property, value=value)


def image_asset(layer_name: str, src: str) -> RenderAsset:
    return RenderAsset(type="image", layer_name=layer_name, src=src)


class PayloadStrategy(ABC):
    """Maps a form onto the substitution layers of one render template."""

    key: str
    template: TemplateRef
    fonts: tuple[str, ...] = ()
    required_text_fields: tuple[str, ...] = ("user_name",)
    required_number_fields: tuple[str, ...] = ("amount", "tenure")

    def build(self, form: FormInput, *, preview: bool = False) -> RenderRequest:
        self.validate(form)
        return RenderRequest(
            preview=preview,
            template=self.template,
            fonts=self.fonts,
            assets=tuple(self.assets(form)),
        )

    def validate(self, form: FormInput) -> None:
        missing = [name for name in self.required_text_fields if not str(getattr(form, name) or "").strip()]
        missing.extend(name for name in self.required_number_fields if (getattr(form, name) or 0) <= 0)
        if missing:
            raise ValidationError(f"missing required fields for {self.key}: {', '.join(missing)}")

    @abstractmethod
    def assets(self, form: FormInput) -> list[RenderAsset]:
        raise NotImplementedError


class GiveAndGetStrategy(PayloadStrategy):
    key = "give_and_get"
    template = TemplateRef(id="01K2MFCW20CFAWHF5JZ96287FX")
    fonts = ("Montserrat-SemiBold.ttf", "Montserrat-Medium.ttf")
    required_text_fields = ("user_name", "plan")
    logo_by_plan = {
        "plan1": "https://thezeist.com/wp-content/uploads/2025/08/Logo_HDFC_Sanchay.png",
        "plan2": "https://thezeist.com/wp-content/uploads/2025/08/Logo_HDFC_Jeevan.png",
    }

    def assets(self, form: FormInput) -> list[RenderAsset]:
        logo_url = self.logo_by_plan.get(form.plan, self.logo_by_plan["plan1"])
        user_name = form.user_name.strip()
        total = form.amount * form.tenure
        return [
            image_asset("BrandLogoSlide1", logo_url),
            image_asset("BrandLogoSlide3", logo_url),
            text_asset("CustomerName", f"Welcome {user_name}"),
            text_asset("CustomerName", "Montserrat-SemiBold", property=f"{SOURCE_TEXT}.font"),
            text_asset("GiveAmount", format_inr(form.amount)),
            text_asset("GiveTenure", f"For {form.tenure} years"),
            text_asset(
                "GiveStatement",
                f"Pay total {format_inr(total)} over the premium term of {form.tenure} years",
            ),
            text_asset("GetAmount", format_inr(total)),
            text_asset("ReturnPremium", f"Return of Premium of {format_inr(total)} Lakhs on {form.tenure} years"),
            text_asset("ThankYouName", user_name),
        ]


class LifeGoalMaximizerStrategy(PayloadStrategy):
    key = "life_goal_maximizer"
    template = TemplateRef(id="01K38JV0SPGZJ8RH6RJ44Y57GW")
    fonts = ("Roboto_Condensed-Bold.ttf", "Roboto-BoldItalic.ttf", "Roboto-Bold.ttf")
    required_text_fields = ("user_name", "child_name")
    required_number_fields = ("amount", "tenure", "client_age")

    def validate(self, form: FormInput) -> None:
        super().validate(form)
        if form.tenure > HORIZON_YEARS:
            raise ValidationError(f"tenure must not exceed {HORIZON_YEARS} years")

    def assets(self, form: FormInput) -> list[RenderAsset]:
        parent_name = form.user_name.strip()
        child_name = form.child_name.strip()
        projection = project(form.amount, form.tenure)

        assets = [
            text_asset("AnnualPremiumAmount", f"{format_inr(form.amount)} p.a."),
            text_asset("PremiumTerm", f"{form.tenure} years"),
        ]
        for index, offset in enumerate(AGE_OFFSETS, start=1):
            assets.append(text_asset(f"ParentAge{index}", f"{form.client_age + offset} years"))
        for index, offset in enumerate(AGE_OFFSETS, start=1):
            assets.append(text_asset(f"ChildAge{index}", f"{DEFAULT_CHILD_AGE + offset} years"))
        for index in range(1, len(AGE_OFFSETS) + 1):
            assets.append(text_asset(f"ParentName{index}", f"{parent_name} age:"))
        for index in range(1, len(AGE_OFFSETS) + 1):
            assets.append(text_asset(f"ChildName{index}", f"{child_name} age:"))
        for index, year in enumerate(sorted(projection.withdrawals), start=1):
            assets.append(text_asset(f"Withdraw_{index}", format_inr(projection.withdrawals[year])))
        assets.append(text_asset("MB_8per", format_inr(projection.maturity_at_8)))
        assets.append(text_asset("MB_4per", format_inr(projection.maturity_at_4)))
        return assets


PAYLOAD_STRATEGIES: dict[str, PayloadStrategy] = {
    strategy.key: strategy for strategy in (GiveAndGetStrategy(), LifeGoalMaximizerStrategy())
}


def get_strategy(template: str) -> PayloadStrategy:
    strategy = PAYLOAD_STRATEGIES.get(template)
    if strategy is None:
        raise ValidationError(f"unknown template: {template!r}")
    return strategy


def build(form: FormInput, *, preview: bool = False) -> RenderRequest:
    if form.preview is not None:
        preview = form.preview
    return get_strategy(form.template).build(form, preview=preview)
