"""
Fallback Selector

Calls identification providers one at a time, in order, until one of them
answers with enough confidence.

Algorithm:
1. Call the next provider, bounded by its own timeout
2. Record a typed attempt (success / low_confidence / error / timeout)
3. Stop at the first result whose top candidate meets the minimum confidence
4. Otherwise return the latest low-confidence result, or an empty result
   carrying every provider's error when nobody answered

Providers are never called in parallel and never retried; the first
adequate answer wins so quota is only spent when it is needed.
"""

import asyncio
import logging
import time
from typing import List, Optional

from plantmatch.core.exceptions import InvalidInputError, ProviderError, ProviderTimeoutError
from plantmatch.identification.base import (
    IdentificationProvider,
    IdentificationResult,
    ProviderAttempt,
)
from plantmatch.identification.normalizer import ResultNormalizer, get_result_normalizer
from plantmatch.models.enums import AttemptOutcome

logger = logging.getLogger(__name__)


class FallbackSelector:
    """
    Sequential provider fallback.

    Usage:
        selector = FallbackSelector([plant_id, plantnet], min_confidence=0.3)
        result = await selector.select(image_bytes)
    """

    def __init__(
        self,
        providers: List[IdentificationProvider],
        min_confidence: float = 0.30,
        default_timeout: float = 30.0,
        normalizer: Optional[ResultNormalizer] = None,
    ):
        """
        Initialize the selector.

        Args:
            providers: Providers in fallback order, primary first
            min_confidence: Minimum top-candidate confidence to accept a result
            default_timeout: Timeout for providers that do not define one
            normalizer: Normalizer for raw responses
        """
        if not 0.0 <= min_confidence <= 1.0:
            raise InvalidInputError(
                f"min_confidence must be within [0, 1], got {min_confidence}"
            )
        self.providers = list(providers)
        self.min_confidence = min_confidence
        self.default_timeout = default_timeout
        self.normalizer = normalizer or get_result_normalizer()

    async def select(self, image: bytes) -> IdentificationResult:
        """
        Identify an image using the first adequate provider.

        Args:
            image: Raw image bytes

        Returns:
            IdentificationResult recording which provider answered

        Raises:
            InvalidInputError: empty image or no providers configured
        """
        if not image:
            raise InvalidInputError("Image payload is empty")
        if not self.providers:
            raise InvalidInputError("No identification providers configured")

        attempts: List[ProviderAttempt] = []
        errors: List[str] = []
        best_effort: Optional[IdentificationResult] = None

        for index, provider in enumerate(self.providers):
            fallback_used = index > 0
            if fallback_used:
                logger.info(f"Falling back to {provider.name}")

            result, attempt = await self._attempt(provider, image, fallback_used)
            attempts.append(attempt)

            if attempt.outcome == AttemptOutcome.SUCCESS:
                result.attempts = attempts
                logger.info(
                    f"Identification via {provider.name}: "
                    f"{result.top_candidate.scientific_name} ({result.top_confidence:.0%})"
                )
                return result

            if attempt.outcome == AttemptOutcome.LOW_CONFIDENCE:
                best_effort = result
            else:
                errors.append(f"{provider.name}: {attempt.error}")

        if best_effort is not None:
            best_effort.attempts = attempts
            logger.warning(
                f"No provider reached {self.min_confidence:.0%} confidence; "
                f"returning {best_effort.source_service} result "
                f"({best_effort.top_confidence:.0%})"
            )
            return best_effort

        logger.error(f"All identification providers failed: {'; '.join(errors)}")
        last_provider = self.providers[-1]
        return IdentificationResult(
            candidates=[],
            source_service=last_provider.name,
            fallback_used=len(self.providers) > 1,
            error=f"All identification providers failed: {'; '.join(errors)}",
            attempts=attempts,
        )

    async def _attempt(
        self,
        provider: IdentificationProvider,
        image: bytes,
        fallback_used: bool,
    ) -> tuple[Optional[IdentificationResult], ProviderAttempt]:
        """Call one provider and classify the outcome."""
        timeout = provider.timeout if provider.timeout is not None else self.default_timeout
        start_time = time.time()

        try:
            raw = await asyncio.wait_for(provider.identify(image), timeout=timeout)
        except (asyncio.TimeoutError, ProviderTimeoutError):
            elapsed_ms = (time.time() - start_time) * 1000
            logger.warning(f"{provider.name} timed out after {elapsed_ms:.0f}ms")
            return None, ProviderAttempt(
                provider=provider.name,
                outcome=AttemptOutcome.TIMEOUT,
                error=f"Timed out after {timeout:g}s",
                elapsed_ms=elapsed_ms,
            )
        except ProviderError as e:
            elapsed_ms = (time.time() - start_time) * 1000
            logger.warning(f"{provider.name} failed: {e.message}")
            return None, ProviderAttempt(
                provider=provider.name,
                outcome=AttemptOutcome.ERROR,
                error=e.message,
                elapsed_ms=elapsed_ms,
            )
        except Exception as e:
            elapsed_ms = (time.time() - start_time) * 1000
            logger.error(f"Error in {provider.name} identification: {e}")
            return None, ProviderAttempt(
                provider=provider.name,
                outcome=AttemptOutcome.ERROR,
                error=str(e) or type(e).__name__,
                elapsed_ms=elapsed_ms,
            )

        elapsed_ms = (time.time() - start_time) * 1000
        result = self.normalizer.normalize(
            raw,
            source_service=provider.name,
            provider_type=provider.provider_type,
            fallback_used=fallback_used,
        )

        if result.top_confidence >= self.min_confidence and not result.is_empty:
            outcome = AttemptOutcome.SUCCESS
        else:
            outcome = AttemptOutcome.LOW_CONFIDENCE
            logger.info(
                f"{provider.name} below threshold: {result.top_confidence:.0%} "
                f"< {self.min_confidence:.0%}"
            )

        return result, ProviderAttempt(
            provider=provider.name,
            outcome=outcome,
            top_confidence=result.top_confidence,
            error=result.error,
            elapsed_ms=elapsed_ms,
        )

    def get_provider_info(self) -> List[dict]:
        """Get info for all providers in fallback order."""
        return [
            {"order": index + 1, **provider.get_provider_info()}
            for index, provider in enumerate(self.providers)
        ]
