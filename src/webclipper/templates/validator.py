"""Template validation for clipper templates."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .engine import TemplateEngine
from .parser import scan_state
from .variables import namespace_of


class ValidationLevel(Enum):
    """Validation strictness levels."""

    PERMISSIVE = "permissive"  # Delimiter checks only
    STANDARD = "standard"  # Unknown filters and lenient parses are warnings
    STRICT = "strict"  # Unknown filters are errors


@dataclass
class ValidationResult:
    """Result of template validation."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    variables: Set[str] = field(default_factory=set)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_warnings(self) -> bool:
        """Check if validation has warnings."""
        return len(self.warnings) > 0

    @property
    def has_errors(self) -> bool:
        """Check if validation has errors."""
        return len(self.errors) > 0


class TemplateValidator:
    """Report problems in a template without rendering it.

    The engine itself never rejects a template; the validator is where
    unbalanced delimiters, unknown filters and expressions that only
    parse thanks to the parser's leniency get surfaced.
    """

    def __init__(
        self,
        engine: Optional[TemplateEngine] = None,
        level: ValidationLevel = ValidationLevel.STANDARD,
    ) -> None:
        """Initialize the validator.

        Args:
            engine: Template engine whose filters are considered known
            level: Validation strictness level
        """
        self.engine = engine if engine is not None else TemplateEngine()
        self.level = level

    def validate(
        self,
        template: str,
        known_variables: Optional[Set[str]] = None,
        max_length: Optional[int] = None,
    ) -> ValidationResult:
        """Validate a template string.

        Args:
            template: Template to validate
            known_variables: Plain variable names the context will provide
            max_length: Maximum allowed template length

        Returns:
            ValidationResult with errors, warnings, and metadata
        """
        errors: List[str] = []
        warnings: List[str] = []

        if not template:
            return ValidationResult(
                is_valid=False,
                errors=["Template cannot be empty"],
                metadata={"empty": True},
            )

        if max_length and len(template) > max_length:
            errors.append(
                f"Template exceeds maximum length ({len(template)} > {max_length})"
            )

        errors.extend(self._check_delimiters(template))

        placeholders = self.engine.find_placeholders(template)
        variables = self.engine.extract_variables(template)
        namespaces = sorted({namespace_of(name) for name in variables})

        metadata = {
            "length": len(template),
            "lines": template.count("\n") + 1,
            "placeholder_count": len(placeholders),
            "variable_count": len(variables),
            "namespaces": namespaces,
        }

        if self.level != ValidationLevel.PERMISSIVE:
            expression_errors, expression_warnings = self._check_expressions(
                placeholders
            )
            errors.extend(expression_errors)
            warnings.extend(expression_warnings)

            if known_variables is not None:
                unknown = {
                    name.split(".")[0].split("[")[0]
                    for name in variables
                    if namespace_of(name) == "path"
                } - known_variables
                if unknown:
                    warnings.append(
                        f"Template uses variables not in context: {', '.join(sorted(unknown))}"
                    )

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            variables=variables,
            metadata=metadata,
        )

    def _check_delimiters(self, template: str) -> List[str]:
        """Check for balanced placeholder delimiters."""
        open_var = template.count("{{")
        close_var = template.count("}}")

        if open_var != close_var:
            return [
                f"Unbalanced variable delimiters: {open_var} '{{{{' vs {close_var} '}}}}'"
            ]
        return []

    def _check_expressions(self, placeholders: List[str]):
        errors: List[str] = []
        warnings: List[str] = []
        reported: Set[str] = set()

        for body in placeholders:
            expression = self.engine.parse(body)

            if not expression.variable:
                warnings.append("Empty placeholder '{{}}' renders as an empty string")
                continue

            state = scan_state(body)
            if state.in_quotes:
                warnings.append(f"Unterminated quote in '{{{{{body}}}}}'")
            if state.depth != 0:
                warnings.append(f"Unbalanced parentheses in '{{{{{body}}}}}'")

            if namespace_of(expression.variable) == "prompt":
                warnings.append(
                    f"Prompt variable {expression.variable} needs an interpreter "
                    "and is left unresolved"
                )

            for call in expression.filters:
                if call.name in self.engine.filters or call.name in reported:
                    continue
                reported.add(call.name)
                message = f"Unknown filter: {call.name}"
                if self.level == ValidationLevel.STRICT:
                    errors.append(message)
                else:
                    warnings.append(message)

        return errors, warnings
