"""
module_attribute_comments

Requires configured attributes of module calls to be documented by a comment
on the line directly above them:

    module "network" {
      source = "./modules/network"
      # Larger instances are needed for the NAT gateway load.
      instance_type = "m5.large"
    }
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, List, Optional, Tuple

from commentcheck.issues import Severity
from commentcheck.parser import Block, Range
from commentcheck.rules.base import Rule
from commentcheck.rules.comments import is_preceded_by_comment
from commentcheck.rules.config import FieldSpec, RuleConfig
from commentcheck.runner import BlockProvider, BlockSchema, BodyMode, ByteSource

logger = logging.getLogger(__name__)


def locate_blocks(provider: BlockProvider, block_type: str) -> List[Block]:
    """All single-label blocks of block_type, with attribute-only bodies."""
    return provider.get_module_content(
        BlockSchema(type=block_type, label_names=("name",), mode=BodyMode.JUST_ATTRIBUTES)
    )


def format_message(spec: FieldSpec, block: Block) -> str:
    message = f'{spec.name} in {block.type} "{block.labels[0]}" should have a comment'
    if spec.message:
        message += f". {spec.message}"
    return message


def evaluate(blocks: Iterable[Block], fields: Sequence[FieldSpec],
             byte_source: ByteSource) -> Iterator[Tuple[str, Range]]:
    """
    Yield (message, range) for every configured attribute lacking a comment.

    Blocks are visited in the given order and fields in configured order.
    Attributes a block does not set are skipped.
    """
    for block in blocks:
        for spec in fields:
            attribute = block.body.attributes.get(spec.name)
            if attribute is None:
                continue
            file_bytes = byte_source.get_file(attribute.range.filename)
            if is_preceded_by_comment(attribute, file_bytes):
                logger.debug("%s in %s %r is documented", spec.name, block.type, block.labels[0])
                continue
            yield format_message(spec, block), attribute.range


class ModuleAttributeCommentsRule(Rule):
    """Checks whether configured module attributes have comments."""

    name = "module_attribute_comments"
    severity = Severity.ERROR
    enabled = False

    def __init__(self, config: Optional[RuleConfig] = None):
        self.config = config or RuleConfig.empty()
        if config is not None:
            self.enabled = config.enabled

    def apply_config(self, payload: Optional[Mapping[str, Any]]) -> None:
        self.config = RuleConfig.decode(payload, self.name)
        # no section at all keeps the rule off
        self.enabled = payload is not None and self.config.enabled

    def check(self, runner) -> None:
        if not self.config.fields:
            logger.warning("%s is enabled, but no attributes were configured", self.name)
            return

        blocks = locate_blocks(runner, self.config.block_type)
        for message, attr_range in evaluate(blocks, self.config.fields, runner):
            runner.emit_issue(self, message, attr_range)
