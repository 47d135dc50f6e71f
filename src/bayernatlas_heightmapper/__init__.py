"""
bayernatlas-heightmapper: terrain height grids from the Bayernatlas profile service

Samples a rectangular GK4 grid through the elevation profile endpoint in
batched LineString requests and renders the result as raw height values,
a grayscale heightmap PNG, or a colourised topographic contour map.
"""
