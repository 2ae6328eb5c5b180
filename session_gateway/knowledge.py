"""
Static knowledge base for the voice agent.

The agent's background content (company description, FAQs, product and
support text) is kept as YAML under `knowledge_bases/` so it can be edited
without touching code. `format_knowledge_for_prompt` turns it into the single
text block that gets injected into the assistant's system prompt.

Implementation note:
- We use PyYAML's safe_load, which parses both YAML and pure JSON files.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from logging_setup import get_logger, Component


logger = get_logger(Component.KNOWLEDGE)

# Names map straight onto file names under knowledge_bases/.
_VALID_NAME = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True)
class Faq:
    question: str
    answer: str


@dataclass(frozen=True)
class KnowledgeBase:
    """Structured background content for the assistant."""

    company_name: str
    company_description: str
    faqs: List[Faq] = field(default_factory=list)
    product_info: str = ""
    support_info: str = ""
    name: str = "default"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: str = "default") -> "KnowledgeBase":
        faqs = [
            Faq(question=str(item["question"]).strip(), answer=str(item["answer"]).strip())
            for item in data.get("faqs") or []
        ]
        return cls(
            company_name=str(data["company_name"]).strip(),
            company_description=str(data.get("company_description") or "").strip(),
            faqs=faqs,
            product_info=str(data.get("product_info") or "").strip(),
            support_info=str(data.get("support_info") or "").strip(),
            name=str(data.get("name", name)),
        )


# Used when no knowledge base file can be found at all.
FALLBACK_KNOWLEDGE = KnowledgeBase(
    company_name="Layercode",
    company_description=(
        "Layercode is a voice AI platform that makes it easy to add conversational "
        "voice interfaces to any application."
    ),
    support_info="For support: support@layercode.com",
    name="fallback",
)


def _get_knowledge_dir() -> Path:
    return Path(__file__).parent / "knowledge_bases"


def _load_file(path: Path) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Knowledge base file {path} must contain a mapping at top-level")
        return data


def load_knowledge_base(name: str) -> KnowledgeBase:
    """
    Load a knowledge base by name.

    Resolution order:
    1) <name>.yaml / <name>.yml / <name>.json
    2) default.yaml / default.yml / default.json
    3) hardcoded fallback

    Names other than letters, digits, `_` and `-` are never looked up, and a
    file that cannot be parsed is skipped like a missing one.
    """
    knowledge_dir = _get_knowledge_dir()

    if _VALID_NAME.fullmatch(name):
        base_names = (name, "default")
    else:
        logger.warning("Rejected knowledge base name, using default", requested=name)
        base_names = ("default",)

    for base_name in base_names:
        for suffix in (".yaml", ".yml", ".json"):
            candidate = knowledge_dir / f"{base_name}{suffix}"
            if not candidate.exists():
                continue
            try:
                knowledge = KnowledgeBase.from_dict(_load_file(candidate), name=base_name)
            except (OSError, yaml.YAMLError, ValueError, KeyError, TypeError) as e:
                logger.error("Failed to load knowledge base", path=str(candidate), error=str(e))
                continue
            if base_name != name:
                logger.warning("Knowledge base not found, using default", requested=name)
            return knowledge

    logger.warning("No knowledge base files found, using fallback", requested=name)
    return FALLBACK_KNOWLEDGE


def get_knowledge_base(name: Optional[str] = None) -> KnowledgeBase:
    """
    Knowledge base for the given name.

    Priority:
    1. name parameter
    2. KNOWLEDGE_BASE environment variable
    3. "default"
    """
    return load_knowledge_base(name or os.getenv("KNOWLEDGE_BASE", "default"))


def format_knowledge_for_prompt(knowledge: KnowledgeBase) -> str:
    """Serialize a knowledge base into the prompt block with fixed section headers."""
    faq_section = "\n\n".join(f"Q: {faq.question}\nA: {faq.answer}" for faq in knowledge.faqs)

    sections = [
        "=== KNOWLEDGE BASE ===",
        f"COMPANY: {knowledge.company_name}",
        f"ABOUT:\n{knowledge.company_description}",
        f"FREQUENTLY ASKED QUESTIONS:\n{faq_section}",
        f"PRODUCT INFORMATION:\n{knowledge.product_info}",
        f"SUPPORT:\n{knowledge.support_info}",
        "=== END KNOWLEDGE BASE ===",
    ]
    return "\n\n".join(sections).strip()
