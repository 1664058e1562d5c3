"""User preference model."""

from __future__ import annotations

from pydantic import AliasChoices, Field, StrictBool

from pebblewx.models._base import BridgeBaseModel


class PreferenceSet(BridgeBaseModel):
    """The two watchface preferences set through the configuration page.

    Serialized with the keys the configuration page emits
    (``lightColorScheme``, ``degreeCelsius``); ``useLightColorScheme`` and
    ``useCelsius`` are accepted on input as well.

    Parameters
    ----------
    use_light_color_scheme : bool
        ``True`` for the light color scheme, ``False`` for dark.
    use_celsius : bool
        ``True`` to display Celsius, ``False`` for Fahrenheit.
    """

    use_light_color_scheme: StrictBool = Field(
        alias="lightColorScheme",
        validation_alias=AliasChoices("lightColorScheme", "useLightColorScheme", "use_light_color_scheme"),
    )
    use_celsius: StrictBool = Field(
        alias="degreeCelsius",
        validation_alias=AliasChoices("degreeCelsius", "useCelsius", "use_celsius"),
    )

    def to_payload(self) -> dict[str, bool]:
        """Return the wire form sent back by the configuration page."""
        return self.model_dump(by_alias=True)


#: In-memory defaults applied when nothing has been stored yet.
DEFAULT_PREFERENCES = PreferenceSet(use_light_color_scheme=False, use_celsius=True)
