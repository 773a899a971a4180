"""
Color transforms and the transform cache.

A transform is realized from a search key: the stage chain for its
category is built, optimized, and translated into pre-curve, mapping and
post-curve, falling back to a sampled 3D LUT when the optimized chain
does not fit that shape.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from wlcolor.core.config import ColorManagerConfig, TransformCategory, TransformStatus
from wlcolor.core.errors import ColorError, ColorTransformError, InvariantError
from wlcolor.pipeline.chain import link_stages
from wlcolor.pipeline.optimizer import optimize_pipeline
from wlcolor.pipeline.stages import CurveSetStage, Pipeline, Stage
from wlcolor.pipeline.translate import (
    ColorCurve,
    ColorMapping,
    CurveIdentity,
    CurveLut3x1D,
    CurveParametric,
    MappingIdentity,
    MappingLut3D,
    MappingMatrix,
    lut3d_fill_in,
    translate_pipeline,
)
from wlcolor.profile import ColorProfile, IccColorProfile, IdAllocator
from wlcolor.properties import RenderIntentInfo

logger = logging.getLogger(__name__)

# Pipeline dumps go to the optimizer's channel.
optimizer_logger = logging.getLogger("wlcolor.pipeline.optimizer")


class TransformSearchParam:
    """
    Cache key of a color transform.

    Profiles and render intents compare by identity.
    """

    __slots__ = ("category", "input_profile", "output_profile", "render_intent")

    def __init__(
        self,
        category: TransformCategory,
        input_profile: Optional[ColorProfile],
        output_profile: ColorProfile,
        render_intent: Optional[RenderIntentInfo] = None,
    ) -> None:
        self.category = category
        self.input_profile = input_profile
        self.output_profile = output_profile
        self.render_intent = render_intent

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransformSearchParam):
            return NotImplemented
        return (
            self.category == other.category
            and self.input_profile is other.input_profile
            and self.output_profile is other.output_profile
            and self.render_intent is other.render_intent
        )

    def __hash__(self) -> int:
        return hash(
            (self.category, id(self.input_profile), id(self.output_profile), id(self.render_intent))
        )

    def __repr__(self) -> str:
        return f"TransformSearchParam({self.category.value})"

    def describe(self) -> str:
        def profile_part(profile: Optional[ColorProfile]):
            if profile is None:
                return 0, "none"
            return profile.id, profile.description

        in_id, in_desc = profile_part(self.input_profile)
        out_id, out_desc = profile_part(self.output_profile)
        intent = self.render_intent.desc if self.render_intent else "none"
        return (
            f"  category: {self.category.value}\n"
            f"  input profile p{in_id}: {in_desc}\n"
            f"  output profile p{out_id}: {out_desc}\n"
            f"  render intent: {intent}\n"
        )


def _curve_name(curve: ColorCurve) -> str:
    if isinstance(curve, CurveParametric):
        return f"parametric {curve.kind.value}"
    if isinstance(curve, CurveLut3x1D):
        return f"3x1D LUT [{curve.optimal_len}]"
    return "identity"


def _mapping_name(mapping: ColorMapping) -> str:
    if isinstance(mapping, MappingMatrix):
        return "matrix"
    if isinstance(mapping, MappingLut3D):
        return f"3D LUT [{mapping.optimal_len}]"
    return "identity"


class ColorTransform:
    """
    A realized, cached color transform.

    Holds references to the profiles of its search key. Owned by the
    :class:`TransformCache`; callers share references.
    """

    def __init__(self, cache: TransformCache, search_key: TransformSearchParam) -> None:
        self.cache = cache
        self.id = 0
        self.ref_count = 1
        self.status = TransformStatus.FAILED
        self.pre_curve: ColorCurve = CurveIdentity()
        self.mapping: ColorMapping = MappingIdentity()
        self.post_curve: ColorCurve = CurveIdentity()

        if search_key.input_profile is not None:
            search_key.input_profile.ref()
        search_key.output_profile.ref()
        self.search_key = search_key

    def __repr__(self) -> str:
        return f"<ColorTransform t{self.id} {self.status.value} refs={self.ref_count}>"

    def __enter__(self) -> ColorTransform:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unref()

    def ref(self) -> ColorTransform:
        if self.ref_count <= 0:
            raise InvariantError(f"referencing destroyed color transformation t{self.id}")
        self.ref_count += 1
        return self

    def unref(self) -> None:
        if self.ref_count <= 0:
            raise InvariantError(f"color transformation t{self.id} unreferenced too many times")
        self.ref_count -= 1
        if self.ref_count == 0:
            self.cache.destroy(self)

    def describe(self) -> str:
        return (
            f"pre {_curve_name(self.pre_curve)}, "
            f"mapping {_mapping_name(self.mapping)}, "
            f"post {_curve_name(self.post_curve)}"
        )


class TransformCache:
    """De-duplicating store of the transforms of one color manager."""

    def __init__(self, config: Optional[ColorManagerConfig] = None) -> None:
        self.config = config or ColorManagerConfig()
        self._transforms: List[ColorTransform] = []
        self._ids = IdAllocator()

    def __len__(self) -> int:
        return len(self._transforms)

    def __iter__(self):
        return iter(list(self._transforms))

    def find(self, param: TransformSearchParam) -> Optional[ColorTransform]:
        for xform in self._transforms:
            if xform.search_key == param:
                return xform
        return None

    def get_transform(self, param: TransformSearchParam) -> ColorTransform:
        """
        Return a new reference to the transform for ``param``.

        Raises
        ------
        ColorError
            When the transform cannot be realized. Nothing is cached then.
        """

        xform = self.find(param)
        if xform is not None:
            return xform.ref()

        try:
            return self._create(param)
        except ColorError:
            logger.error("failed to create a color transformation.")
            raise

    def _create(self, param: TransformSearchParam) -> ColorTransform:
        xform = ColorTransform(self, param)
        xform.id = self._ids.get_id()

        logger.debug("New color transformation: t%u", xform.id)
        logger.debug("%s", param.describe().rstrip("\n"))

        try:
            self._realize(xform)
        except Exception as exc:
            logger.debug("\t%s", exc)
            self.destroy(xform)
            raise

        self._transforms.append(xform)
        logger.debug("  %s", xform.describe())
        return xform

    def destroy(self, xform: ColorTransform) -> None:
        """Unlink ``xform`` and drop its profile references."""

        self._transforms = [x for x in self._transforms if x is not xform]
        key = xform.search_key
        if key.input_profile is not None:
            key.input_profile.unref()
        key.output_profile.unref()
        self._ids.put_id(xform.id)
        logger.debug("Destroyed color transformation t%u.", xform.id)

    def build_chain(self, key: TransformSearchParam) -> List[Stage]:
        """Stage chain for the category of ``key``."""

        output = key.output_profile
        profiles = [output] if key.input_profile is None else [key.input_profile, output]
        for profile in profiles:
            if not isinstance(profile, IccColorProfile):
                raise ColorTransformError(
                    f"color profile p{profile.id} is not supported in color transformations"
                )

        extract = output.ensure_output_extract(self.config.num_1d_points)
        category = key.category

        if category is TransformCategory.BLEND_TO_OUTPUT:
            if key.render_intent is not None:
                raise InvariantError("blend-to-output transforms take no render intent")
            stages: List[Stage] = [CurveSetStage(extract.inv_eotf)]
            if extract.vcgt is not None:
                stages.append(CurveSetStage(extract.vcgt))
            return stages

        if key.input_profile is None or key.render_intent is None:
            raise InvariantError(f"{category.value} transform needs an input profile and intent")

        stages = link_stages(key.input_profile.icc, output.icc, key.render_intent)
        if category is TransformCategory.INPUT_TO_BLEND:
            stages.append(CurveSetStage(extract.eotf))
        elif extract.vcgt is not None:
            stages.append(CurveSetStage(extract.vcgt))
        return stages

    def _realize(self, xform: ColorTransform) -> None:
        config = self.config
        pipeline = Pipeline(self.build_chain(xform.search_key))

        optimizer_logger.debug(
            "  transform pipeline before optimization:\n%s", pipeline.describe().rstrip("\n")
        )
        optimized = optimize_pipeline(
            pipeline, config.num_1d_points, config.matrix_precision_bits
        )
        optimizer_logger.debug(
            "  transform pipeline after optimization:\n%s", optimized.describe().rstrip("\n")
        )

        translated = translate_pipeline(optimized, config.num_1d_points)
        if translated is not None:
            xform.pre_curve, xform.mapping, xform.post_curve = translated
            xform.status = TransformStatus.OPTIMIZED
            return

        if xform.search_key.category is TransformCategory.BLEND_TO_OUTPUT:
            raise InvariantError("blend-to-output transform fell back to a 3D LUT")

        xform.pre_curve = CurveIdentity()
        xform.mapping = MappingLut3D(config.num_3d_points, lut3d_fill_in(pipeline))
        xform.post_curve = CurveIdentity()
        xform.status = TransformStatus.LUT_3D
