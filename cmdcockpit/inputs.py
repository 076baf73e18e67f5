#===============================================================================
#  CMD_Cockpit | inputs.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  ${input:Label} placeholders in commands, URLs and program arguments.
#  Each distinct label is asked once per run and the answer substituted
#  verbatim everywhere it appears.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from .errors import InputCancelled
from .hosts import InputPrompt

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\$\{input:([^}]+)\}")


def placeholder_labels(text: Optional[str]) -> List[str]:
    """Distinct labels in order of first appearance."""
    labels: List[str] = []
    for m in PLACEHOLDER.finditer(text or ""):
        label = m.group(1).strip()
        if label not in labels:
            labels.append(label)
    return labels


class InputResolver:
    """Per-run answer cache in front of an InputPrompt."""

    def __init__(self, prompt: Optional[InputPrompt] = None):
        self.prompt = prompt
        self.answers: Dict[str, str] = {}

    def ask(self, label: str) -> str:
        if label in self.answers:
            return self.answers[label]
        if self.prompt is None:
            raise InputCancelled(label)
        answer = self.prompt.ask(label)
        if answer is None:
            logger.info("Input '%s' cancelled", label)
            raise InputCancelled(label)
        self.answers[label] = answer
        return answer

    def resolve(self, text: Optional[str]) -> Optional[str]:
        """Substitute every placeholder in ``text``. Raises InputCancelled."""
        if not text or "${input:" not in text:
            return text
        for label in placeholder_labels(text):
            self.ask(label)
        return PLACEHOLDER.sub(lambda m: self.answers[m.group(1).strip()], text)

    def resolve_all(self, texts: List[str]) -> List[str]:
        return [self.resolve(t) or "" for t in texts]
