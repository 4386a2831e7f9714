"""Whitted-style recursive ray tracer built on Taichi.

This package renders scenes of analytic shapes lit by point and directional
lights, with:
- Phong direct lighting and transparency-tinted shadows
- Recursive mirror reflection and Snell refraction
- Spheres, planes, disks, boxes, triangles and cylinders under arbitrary
  affine transforms
- Checker and image textures

Subpackages:
    core: Ray utilities, transforms, the image buffer and the integrator
    geometry: Shape descriptions and local-space intersection routines
    materials: Phong materials and textures
    scene: Scene container, builder, lights and ray-scene queries
    camera: Perspective camera with primary ray generation
    preview: PNG export

Taichi must be initialized (ti.init) before importing modules that hold
Taichi fields.
"""

__version__ = "0.1.0"
