"""
Errors raised by the generation pipeline.
Routers translate these into HTTP status codes.
"""


class GenerationError(Exception):
    """Base class for paper generation failures."""


class TemplateNotFoundError(GenerationError):
    """The template id does not resolve to a stored template (404)."""

    def __init__(self, template_id):
        self.template_id = template_id
        super().__init__(f"Template {template_id} not found")


class InvalidTemplateError(GenerationError):
    """Stored template JSON does not describe a usable section list."""


class QuestionQueryError(GenerationError):
    """The question pool query for one section failed. Recovered per section."""


class ExtractionInputError(GenerationError):
    """Uploaded content could not be turned into text for extraction (400)."""

    def __init__(self, message: str, suggestion: str = None):
        self.suggestion = suggestion
        super().__init__(message)


class ExtractionParseError(GenerationError):
    """The model reply did not contain a parseable JSON object (500)."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__("Failed to parse AI response")
