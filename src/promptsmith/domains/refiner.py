"""Domain-rule refinement, template, system-prompt and example generation."""

from __future__ import annotations

import logging
import re

from langchain_core.prompts import PromptTemplate

from promptsmith.domains.registry import DomainProfile, DomainRegistry, default_registry
from promptsmith.quality import lexicon
from promptsmith.types import AnalysisResult, Example, RefinementResult, TemplateResult, TemplateType

logger = logging.getLogger(__name__)

_TEMPLATE_SUFFIXES: dict[TemplateType, str] = {
    TemplateType.BASIC: "",
    TemplateType.STEP_BY_STEP: "\n\nBreak the solution into numbered steps and explain each one.",
    TemplateType.CHAIN_OF_THOUGHT: "\n\nThink through the problem step by step before giving the final answer.",
    TemplateType.FEW_SHOT: "\n\nFollow the style of these examples:\n{{examples}}",
    TemplateType.ROLE_BASED: "",
}

_MUSTACHE_TAG = re.compile(r"(\{\{[^}]*\}\})")

_FOCUS_LINES: dict[str, str] = {
    "sql": "Focus on database best practices, SQL standards, and query optimization.",
    "branding": "Focus on strategic marketing, brand development, and creative direction.",
    "cine": "Focus on professional screenwriting, storytelling, and film industry standards.",
    "saas": "Focus on user experience, scalable solutions, and SaaS best practices.",
    "devops": "Focus on reliable infrastructure, automation, and operational excellence.",
}


class DomainRefiner:
    """Applies registry data to prompts. Holds no per-request state."""

    def __init__(self, registry: DomainRegistry | None = None, *, complexity_threshold: float = 0.7) -> None:
        self.registry = registry or default_registry()
        self.complexity_threshold = complexity_threshold

    def apply_domain_rules(
        self,
        raw: str,
        domain: str,
        analysis: AnalysisResult | None = None,
    ) -> RefinementResult:
        del analysis  # rule tables are text-only.
        profile = self.registry.get(domain)
        refined = raw.strip()
        rules_applied: list[str] = []
        improvements: list[str] = []
        if not refined:
            return RefinementResult(refined=refined)

        for rule in profile.rules:
            refined, count = rule.pattern.subn(rule.replacement, refined)
            if count:
                rules_applied.append(rule.name)
                improvements.append(rule.description)

        if refined[0].islower():
            refined = refined[0].upper() + refined[1:]
            rules_applied.append("general_capitalization")
            improvements.append("Capitalized first letter")

        if refined[-1] not in ".!?":
            refined = f"{refined}."
            rules_applied.append("general_punctuation")
            improvements.append("Added ending punctuation")

        additions: list[str] = []
        for enhancement in profile.enhancements:
            if enhancement.applies_to(refined):
                additions.append(enhancement.addition)
                rules_applied.append(enhancement.name)
                improvements.append(enhancement.description)
        if additions:
            refined = "\n\n".join([refined, *additions])

        return RefinementResult(refined=refined, rules_applied=rules_applied, improvements=improvements)

    def generate_template(
        self,
        text: str,
        variables: dict[str, str] | None,
        domain: str,
    ) -> TemplateResult:
        """Lift repeated nouns and caller values into mustache variables."""
        caller_vars = dict(variables or {})
        template_type = select_template_type(text, caller_vars)
        body = text
        template_vars: dict[str, str] = {}

        for name, value in caller_vars.items():
            if value:
                body = _sub_outside_tags(re.compile(rf"\b{re.escape(value)}\b"), "{{" + name + "}}", body)
            template_vars[name] = value

        for name, nouns in lexicon.templatable_entities(_MUSTACHE_TAG.sub(" ", body)).items():
            if name in template_vars:
                continue
            body = _sub_outside_tags(lexicon.ENTITY_PATTERNS[name], "{{" + name + "}}", body)
            template_vars[name] = nouns[0]

        if template_type is TemplateType.ROLE_BASED:
            body = "You are an expert in {{domain}}.\n\n" + body
            template_vars.setdefault("domain", self.registry.get(domain).name)
        elif template_type is TemplateType.FEW_SHOT:
            template_vars.setdefault("examples", caller_vars.get("examples") or caller_vars.get("samples", ""))
        body += _TEMPLATE_SUFFIXES[template_type]

        try:
            template = PromptTemplate.from_template(body, template_format="mustache")
        except (ValueError, SyntaxError) as exc:
            logger.warning(f"Template parse failed, using basic template: {exc}")
            return TemplateResult(prompt=text, variables=caller_vars, type=TemplateType.BASIC)

        for name in template.input_variables:
            template_vars.setdefault(name, "")
        return TemplateResult(
            prompt=template.template,
            system=self.registry.get(domain).system_prompt,
            variables=template_vars,
            type=template_type,
        )

    def generate_system_prompt(
        self,
        domain: str,
        analysis: AnalysisResult | None = None,
        context: str | None = None,
    ) -> str:
        profile = self.registry.get(domain)
        parts = [profile.system_prompt or _fallback_system_prompt(profile)]
        if analysis is not None and analysis.complexity > self.complexity_threshold:
            parts.append(
                "Note: This is a complex request. Break down the solution into logical "
                "components and provide step-by-step explanations."
            )
        if context:
            parts.append(f"Additional Context: {context}")
        return "\n\n".join(parts)

    def generate_examples(
        self,
        text: str,
        domain: str,
        analysis: AnalysisResult | None = None,
        count: int = 2,
    ) -> list[Example]:
        del text, analysis
        examples = self.registry.get(domain).examples
        if not examples:
            examples = self.registry.get("general").examples
        return [example.model_copy() for example in examples[:count]]


def select_template_type(text: str, variables: dict[str, str]) -> TemplateType:
    lowered = text.lower()
    if any(marker in lowered for marker in ("step", "guide", "how to", "tutorial")):
        return TemplateType.STEP_BY_STEP
    if re.search(r"\b(as an?|you are|expert|professional)\b", lowered):
        return TemplateType.ROLE_BASED
    if any(marker in lowered for marker in ("analyze", "explain", "reasoning", "think through")):
        return TemplateType.CHAIN_OF_THOUGHT
    if "examples" in variables or "samples" in variables:
        return TemplateType.FEW_SHOT
    return TemplateType.BASIC


def _sub_outside_tags(pattern: re.Pattern[str], replacement: str, body: str) -> str:
    # Callable replacement: variable names are literal text, never group references.
    parts = _MUSTACHE_TAG.split(body)
    return "".join(
        part if _MUSTACHE_TAG.fullmatch(part) else pattern.sub(lambda _match: replacement, part)
        for part in parts
    )


def _fallback_system_prompt(profile: DomainProfile) -> str:
    focus = _FOCUS_LINES.get(profile.name, "")
    base = "You are a professional assistant providing accurate and helpful responses."
    return f"{base} {focus}".strip()
