"""Keyword-based topic deduplication.

Headlines that the annotator labelled with the same keyword describe the
same trending subject. They are merged into one Topic in a single stable
pass: the first headline carrying a keyword fixes the topic's first-seen
index (its rank proxy) and its summary; later headlines are appended.
"""

from typing import Dict, List, Sequence

from trendscope.core.logging import get_logger
from trendscope.trender.models import Annotation, RawHeadline, Topic

logger = get_logger(__name__)


def deduplicate_headlines(
    headlines: Sequence[RawHeadline],
    annotations: Sequence[Annotation]
) -> List[Topic]:
    """
    Group headlines into topics by exact keyword.

    Args:
        headlines: Headlines in feed order
        annotations: One annotation per headline, same order

    Returns:
        Topics ordered by first-seen index ascending
    """
    if len(headlines) != len(annotations):
        raise ValueError(
            f"Annotations must align with headlines ({len(annotations)} != {len(headlines)})"
        )

    topics: Dict[str, Topic] = {}

    for index, (headline, annotation) in enumerate(zip(headlines, annotations)):
        topic = topics.get(annotation.keyword)
        if topic is None:
            topics[annotation.keyword] = Topic(
                keyword=annotation.keyword,
                first_seen_index=index,
                headlines=[headline],
                summary=annotation.summary,
            )
        else:
            topic.headlines.append(headline)

    # dicts keep insertion order, which is first-seen order
    result = list(topics.values())
    logger.debug(f"Deduplicated {len(headlines)} headlines into {len(result)} topics")
    return result
