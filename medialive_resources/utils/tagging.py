import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from medialive_resources import config
from medialive_resources.constants import AWS_TAG_PREFIX

LOG = logging.getLogger(__name__)


@dataclass
class TagDiff:
    """Changes needed to turn one tag map into another."""

    to_set: Dict[str, str] = field(default_factory=dict)
    to_remove: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_set and not self.to_remove


def is_ignored_tag_key(key: str, ignore_aws: bool = True, ignore_config: bool = True) -> bool:
    if ignore_aws and key.startswith(AWS_TAG_PREFIX):
        return True
    if ignore_config:
        if key in config.IGNORE_TAGS_KEYS:
            return True
        if any(key.startswith(prefix) for prefix in config.IGNORE_TAGS_KEY_PREFIXES):
            return True
    return False


def tags_to_api(tags: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Tags as they are sent to the service. Keys reserved by AWS are never sent."""
    return {
        k: str(v) for k, v in (tags or {}).items() if not is_ignored_tag_key(k, ignore_config=False)
    }


def tags_from_api(tags: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Tags as reported by the service, without AWS managed and ignored keys."""
    return {k: v for k, v in (tags or {}).items() if not is_ignored_tag_key(k)}


def diff_tags(old: Optional[Dict[str, str]], new: Optional[Dict[str, str]]) -> TagDiff:
    """
    Compares two tag maps: keys missing from ``new`` are removed, keys that are new or whose value changed
    are set. Ignored keys are left alone in both directions.
    """
    old = {k: v for k, v in (old or {}).items() if not is_ignored_tag_key(k)}
    new = {k: str(v) for k, v in (new or {}).items() if not is_ignored_tag_key(k)}

    return TagDiff(
        to_set={k: v for k, v in new.items() if old.get(k) != v},
        to_remove=sorted(k for k in old if k not in new),
    )


def update_tags(client, arn: str, old: Optional[Dict[str, str]], new: Optional[Dict[str, str]]) -> TagDiff:
    """
    Brings the tags of the resource with the given ARN from ``old`` to ``new``.

    Removals are sent with a single ``delete_tags`` call, additions and changes with a single ``create_tags``
    call (which overwrites existing values). Nothing is sent when the maps are equal.

    :param client: the MediaLive client
    :param arn: ARN of the tagged resource
    :param old: the previously declared tags
    :param new: the newly declared tags
    :return: the applied diff
    """
    diff = diff_tags(old, new)
    if diff.is_empty:
        return diff

    if diff.to_remove:
        LOG.debug("Removing tags %s from %s", diff.to_remove, arn)
        client.delete_tags(ResourceArn=arn, TagKeys=diff.to_remove)
    if diff.to_set:
        LOG.debug("Setting tags %s on %s", list(diff.to_set), arn)
        client.create_tags(ResourceArn=arn, Tags=diff.to_set)

    return diff
