from pydantic import BaseModel, ConfigDict, Field


class Language(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Language code sent to the sentiment backend")
    name: str = Field(..., description="Display name shown with results")


LANGUAGES: list[Language] = [
    Language(code="en", name="English"),
    Language(code="hi", name="Hindi"),
    Language(code="bn", name="Bengali"),
    Language(code="te", name="Telugu"),
    Language(code="mr", name="Marathi"),
    Language(code="ta", name="Tamil"),
    Language(code="gu", name="Gujarati"),
    Language(code="kn", name="Kannada"),
    Language(code="ml", name="Malayalam"),
    Language(code="pa", name="Punjabi"),
    Language(code="or", name="Odia"),
    Language(code="as", name="Assamese"),
    Language(code="ur", name="Urdu"),
]

DEFAULT_LANGUAGE = "en"

_BY_CODE: dict[str, Language] = {lang.code: lang for lang in LANGUAGES}


def get_languages() -> list[Language]:
    return LANGUAGES


def is_supported_language(code: str) -> bool:
    return code in _BY_CODE


def get_language_name(code: str) -> str | None:
    lang = _BY_CODE.get(code)
    return lang.name if lang else None
