"""Phong reflection model with distance attenuation and shadow tint.

For one light of color C reaching a surface point, with unit normal N, unit
direction to the light L and unit direction back toward the viewer V:

    ambient  = Ka * C
    diffuse  = max(0, N.L) * Kd * C * atten * tint
    specular = max(0, R.V)^shininess * Ks * C * atten * tint

where R = reflect(-L, N) is L mirrored about N, atten is the light's
distance falloff and tint the per-channel fraction of light let through by
intervening geometry. Ambient light is neither attenuated nor shadowed.

Example:
    >>> # Use within a Taichi kernel:
    >>> # atten = attenuation_factor(1.0, 0.0, 0.25, distance)
    >>> # color = phong(ka, kd, ks, shininess, light_color, n, l, v, atten, tint)
"""

import taichi as ti
import taichi.math as tm

from whitted.core.ray import reflect

vec3 = tm.vec3


@ti.func
def attenuation_factor(kc: ti.f32, kl: ti.f32, kq: ti.f32, distance: ti.f32) -> ti.f32:
    """Distance falloff 1 / (Kc + Kl*D + Kq*D^2) of a point light.

    A non-positive denominator means the light is fully attenuated, so the
    factor is 0 rather than a division by zero.
    """
    denom = kc + kl * distance + kq * distance * distance
    factor = 0.0
    if denom > 0.0:
        factor = 1.0 / denom
    return factor


@ti.func
def phong(
    ka: vec3,
    kd: vec3,
    ks: vec3,
    shininess: ti.f32,
    light_color: vec3,
    normal: vec3,
    to_light: vec3,
    to_viewer: vec3,
    attenuation: ti.f32,
    tint: vec3,
) -> vec3:
    """Evaluate the Phong model for a single light.

    Args:
        ka: Ambient reflectance (already texture-modulated).
        kd: Diffuse reflectance (already texture-modulated).
        ks: Specular reflectance.
        shininess: Phong exponent.
        light_color: The light's RGB color.
        normal: Unit surface normal facing the viewer.
        to_light: Unit vector from the surface point toward the light.
        to_viewer: Unit vector from the surface point toward the ray origin.
        attenuation: Distance attenuation factor (1 for directional lights).
        tint: Shadow tint in [0, 1] per channel.

    Returns:
        The summed ambient, diffuse and specular contribution (unclamped).
    """
    ambient = ka * light_color

    n_dot_l = tm.dot(normal, to_light)
    diffuse = tm.max(n_dot_l, 0.0) * kd * light_color

    r = reflect(-to_light, normal)
    r_dot_v = tm.dot(r, to_viewer)
    highlight = 0.0
    if r_dot_v > 0.0:
        highlight = tm.pow(r_dot_v, shininess)
    specular = highlight * ks * light_color

    return ambient + (diffuse + specular) * attenuation * tint
