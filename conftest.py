"""
Test image builders
"""
import numpy as np


BLOCK = np.ones( (3,3), dtype=np.uint8 ) * 10


def blocks( shape, positions, block=BLOCK ):
    """ Paint 'block' at each (y,x) top left in an empty image """
    img = np.zeros( shape, dtype=np.uint8 )
    b_h, b_w = block.shape
    for y, x in positions:
        img[ y:y+b_h, x:x+b_w ] = block
    return img


def pixelSets( objects ):
    # objects as sets of coords, in a stable order
    return sorted( ( frozenset( (p.x, p.y) for p in obj ) for obj in objects ), key=sorted )
