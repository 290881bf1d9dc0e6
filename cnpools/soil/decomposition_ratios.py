"""C:N ratios of material entering a destination pool and the decomposition gate.

These are pure functions: they read their inputs and never modify a pool or
a site.
"""

# Mineral N below this amount is treated as absent.
MINERAL_N_EPSILON = 0.0000001

# Conversion of carbon to biomass for the aboveground N content.
BIOMASS_CONVERSION = 2.0


def decompose_possible(ratio_cn_pool, ratio_cn_new, mineral_n):
    """Determine if decomposition can occur.

    :param ratio_cn_pool: C:N ratio of the decomposing pool
    :param ratio_cn_new: C:N ratio of the new material entering the destination
    :param mineral_n: mineral N of the site (g N m^-2)
    :return: False if there is no available mineral N and the pool C:N is
        higher than that of the new material, i.e. immobilization would be
        required but cannot be supplied. True otherwise.

    If there is some available mineral N, decomposition can proceed even if
    mineral N is driven negative in the same step.
    """
    if mineral_n < MINERAL_N_EPSILON:
        if ratio_cn_pool > ratio_cn_new:
            return False
    return True


def aboveground_decomposition_ratio(
    aboveground_n, aboveground_c, min_cn, max_cn, min_n_content
):
    """C:N ratio of surface material entering the organic horizon.

    :param aboveground_n: nitrogen of the surface material (g N m^-2)
    :param aboveground_c: carbon of the surface material (g C m^-2)
    :param min_cn: minimum C:N of surface microbes
    :param max_cn: maximum C:N of surface microbes
    :param min_n_content: N content above which the minimum C:N applies

    The ratio decreases linearly from `max_cn` at zero N content to `min_cn`
    at `min_n_content`.
    """
    # slope of the regression line for C:N of surface microbes
    cemicb = (min_cn - max_cn) / min_n_content

    if (aboveground_c * BIOMASS_CONVERSION) <= 0.00000000001:
        n_content = 0.0
    else:
        n_content = aboveground_n / (aboveground_c * BIOMASS_CONVERSION)

    if n_content > min_n_content:
        return min_cn
    return max_cn + n_content * cemicb


def belowground_decomposition_ratio(mineral_n, min_cn_enter, max_cn_enter, min_content_n):
    """C:N ratio of soil material entering the organic horizon.

    Depends on the mineral N of the site: nitrogen poor sites give the
    maximum ratio, sites above `min_content_n` the minimum ratio and in
    between the ratio is interpolated linearly.
    """
    if mineral_n <= 0.0:
        return max_cn_enter
    elif mineral_n > min_content_n:
        return min_cn_enter
    else:
        return (1.0 - (mineral_n / min_content_n)) * (
            max_cn_enter - min_cn_enter
        ) + min_cn_enter
