"""Candidate resolution for empty dock slots.

When a slot has no occupant the engine asks the resolver for the best
component to fill it. Foreground tasks win over everything else; failing
that, a launchable app is picked at random so that no single app is always
recommended.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import AbstractSet, FrozenSet, Iterable, Iterator, Optional

from car_dock.types import ComponentName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Exclusions:
    """Packages and components that must never be placed in the dock."""

    packages: FrozenSet[str] = field(default_factory=frozenset)
    components: FrozenSet[ComponentName] = field(default_factory=frozenset)

    def is_excluded(self, component: ComponentName) -> bool:
        """Check whether a component is excluded.

        Args:
            component: Component to check

        Returns:
            True if its package or the component itself is excluded
        """
        return component.package_name in self.packages or component in self.components


class CandidateResolver:
    """Picks components for empty dock slots.

    Example:
        >>> resolver = CandidateResolver()
        >>> resolver.resolve(tasks, launcher_set, {"com.example.maps"}, Exclusions())
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        """Initialize resolver.

        Args:
            rng: Random source for shuffling launcher candidates
        """
        self.rng = rng or random.Random()

    def candidates(
        self,
        current_tasks: Iterable[ComponentName],
        launcher_candidates: Iterable[ComponentName],
        placed_packages: AbstractSet[str],
        exclusions: Exclusions,
    ) -> Iterator[ComponentName]:
        """Yield every eligible component in priority order.

        Task components come first, in task order, then launcher components
        in shuffled order. Excluded components and packages already in the
        dock are skipped.

        Args:
            current_tasks: Foreground task components, most recent first
            launcher_candidates: Launchable components
            placed_packages: Packages already occupying a slot
            exclusions: Exclusion sets

        Yields:
            Eligible components
        """
        def eligible(component: ComponentName) -> bool:
            return (
                not exclusions.is_excluded(component)
                and component.package_name not in placed_packages
            )

        for component in current_tasks:
            if eligible(component):
                yield component

        # sorted first so a seeded rng gives the same order across runs
        shuffled = sorted(launcher_candidates, key=ComponentName.flatten)
        self.rng.shuffle(shuffled)
        for component in shuffled:
            if eligible(component):
                yield component

    def resolve(
        self,
        current_tasks: Iterable[ComponentName],
        launcher_candidates: Iterable[ComponentName],
        placed_packages: AbstractSet[str],
        exclusions: Exclusions,
    ) -> Optional[ComponentName]:
        """Best component for one empty slot.

        Returns:
            First eligible component, or None if nothing qualifies
        """
        return next(
            self.candidates(current_tasks, launcher_candidates, placed_packages, exclusions),
            None,
        )
