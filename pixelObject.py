"""
Pixels and the objects they are gathered into.

An object is an unordered bag of pixels, unique on (x,y).  Bounding box, value
extrema and the value sum are kept up to date on every append, so a finished
object can report them without another pass over its pixels.

Bounding box follows the x,y -> m,n convention:

  +-------------+
  |x,y          |
  |             |
  |          m,n|
  +-------------+
"""
import math
from collections import namedtuple

import numpy as np


class Pixel( namedtuple( "Pixel", ( "x", "y", "value", "scale" ), defaults=( 0.0, 1.0 ) ) ):
    """ A single image bin.  'scale' is an extra weight used when centroiding.

        Pixels are immutable, use rescaled() to get a re-weighted copy.  Two
        pixels are equal when they sit at the same x,y, and are ordered by value,
        so sorted( obj ) runs dimmest first.
    """
    __slots__ = ()

    @property
    def coord( self ):
        return ( self.x, self.y )

    def rescaled( self, scale ):
        return self._replace( scale=scale )

    # identity is the coord, order is the value
    def __eq__( self, other ):
        if( not isinstance( other, Pixel ) ):
            return NotImplemented
        return self.coord == other.coord

    def __ne__( self, other ):
        if( not isinstance( other, Pixel ) ):
            return NotImplemented
        return self.coord != other.coord

    def __hash__( self ):
        return hash( self.coord )

    def __lt__( self, other ):
        if( not isinstance( other, Pixel ) ):
            return NotImplemented
        return self.value < other.value

    def __le__( self, other ):
        if( not isinstance( other, Pixel ) ):
            return NotImplemented
        return self.value <= other.value

    def __gt__( self, other ):
        if( not isinstance( other, Pixel ) ):
            return NotImplemented
        return self.value > other.value

    def __ge__( self, other ):
        if( not isinstance( other, Pixel ) ):
            return NotImplemented
        return self.value >= other.value


class ObjectAccumulator( object ):

    def __init__( self, pixels=None ):
        self.clear()
        if( pixels is not None ):
            self.extend( pixels )


    def clear( self ):
        self._pixels     = []
        self._coords     = set()
        # bounding box, infinities so the first append always wins
        self.xmin, self.ymin = math.inf, math.inf
        self.xmax, self.ymax = -math.inf, -math.inf
        # stats
        self.value_min   = math.inf
        self.value_max   = -math.inf
        self.value_sum   = 0.0


    def append( self, pixel ):
        """ Add a pixel (or an (x, y, value[, scale]) tuple).

            Returns False, and changes nothing, if this object already holds a
            pixel at the same x,y.
        """
        if( not isinstance( pixel, Pixel ) ):
            pixel = Pixel( *pixel )

        key = pixel.coord
        if( key in self._coords ):
            return False

        self.xmin = min( pixel.x, self.xmin )
        self.xmax = max( pixel.x, self.xmax )
        self.ymin = min( pixel.y, self.ymin )
        self.ymax = max( pixel.y, self.ymax )
        self.value_min = min( pixel.value, self.value_min )
        self.value_max = max( pixel.value, self.value_max )
        self.value_sum += pixel.value

        self._pixels.append( pixel )
        self._coords.add( key )
        return True


    def extend( self, pixels ):
        for pixel in pixels:
            self.append( pixel )


    def remove( self, index ):
        """ Drop the pixel at 'index'.

            Only the sum follows the removal.  Bounding box and value extrema are
            left as they were, and may now be wider than the remaining pixels.
        """
        pixel = self._pixels.pop( index )
        self._coords.discard( pixel.coord )
        self.value_sum -= pixel.value
        return pixel


    def contains( self, pixel ):
        return ( pixel[0], pixel[1] ) in self._coords


    def overlaps( self, other ):
        for pixel in other:
            if( self.contains( pixel ) ):
                return True
        return False


    def sort( self ):
        # dimmest first
        self._pixels.sort()


    def asArrays( self ):
        """ Returns xs, ys, values, scales as float arrays """
        if( not self._pixels ):
            empty = np.zeros( (0,), dtype=np.float64 )
            return empty, empty.copy(), empty.copy(), empty.copy()
        data = np.asarray( self._pixels, dtype=np.float64 )
        return data[:,0], data[:,1], data[:,2], data[:,3]


    def centroid( self, weight_bins=True ):
        """
            Position of the object as the weighted mean of its pixel positions.

            weight = scale * value     (weight_bins)
            weight = scale             (otherwise)

            x = sum( weight * x ) / sum( weight ), same for y

            When the weights sum to zero or less (dim, or negative, pixels) the
            value weighting is dropped and the plain mean of positions is used.
        """
        if( not self._pixels ):
            raise ValueError( "Can't centroid an empty object" )

        xs, ys, values, scales = self.asArrays()
        weights = scales * values if weight_bins else scales
        weight_sum = weights.sum()

        if( weight_sum > 0. ):
            return ( float( (weights * xs).sum() / weight_sum ),
                     float( (weights * ys).sum() / weight_sum ) )

        if( weight_bins ):
            return self.centroid( weight_bins=False )

        raise ValueError( "Pixel scales sum to {}, no centroid".format( weight_sum ) )


    def boundingBox( self ):
        return ( self.xmin, self.ymin, self.xmax, self.ymax )


    def copy( self ):
        other = ObjectAccumulator()
        other._pixels = list( self._pixels )
        other._coords = set( self._coords )
        other.xmin, other.ymin = self.xmin, self.ymin
        other.xmax, other.ymax = self.xmax, self.ymax
        other.value_min = self.value_min
        other.value_max = self.value_max
        other.value_sum = self.value_sum
        return other


    def size( self ):
        return len( self._pixels )


    def isEmpty( self ):
        return len( self._pixels ) == 0


    def __len__( self ):
        return len( self._pixels )


    def __getitem__( self, index ):
        return self._pixels[ index ]


    def __iter__( self ):
        return iter( self._pixels )


    def __contains__( self, pixel ):
        return self.contains( pixel )


    def __repr__( self ):
        return "Object of {} px BB: {}-{}, {}-{}. Values: {}-{}, sum {}".format(
            len( self._pixels ), self.xmin, self.ymin, self.xmax, self.ymax,
            self.value_min, self.value_max, self.value_sum
        )
