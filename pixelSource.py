"""
Image access for the scanner, and the test for a 'hot' pixel.

Data is row major, (0,0) top left.  A sensor normally hands us a flat
(unravelled) buffer and its extents as data_wh, a 2D array works as is.
"""
import logging

import cv2
import numpy as np

log = logging.getLogger( __name__ )


class OutOfRange( IndexError ):

    def __init__( self, x, y, width, height ):
        super( OutOfRange, self ).__init__(
            "Pixel ({}, {}) outside {}x{} image".format( x, y, width, height )
        )
        self.x, self.y = x, y


class PixelSource( object ):
    """ Read only, bounds checked view of a scalar image """

    def __init__( self, data, data_wh=None ):
        data = np.asarray( data )
        if( data_wh is not None ):
            d_w, d_h = data_wh
            if( data.size != d_w * d_h ):
                raise ValueError( "Buffer of {} px doesn't fit {}x{}".format( data.size, d_w, d_h ) )
            data = data.reshape( (d_h, d_w) )

        if( data.ndim != 2 ):
            raise ValueError( "Expected a 2D image, got shape {}".format( data.shape ) )

        self.data = data
        self.height, self.width = data.shape


    @classmethod
    def fromImageFile( cls, path ):
        img = cv2.imread( str( path ), cv2.IMREAD_UNCHANGED )
        if( img is None ):
            raise IOError( "Failed to load image: {}".format( path ) )

        if( img.ndim == 3 ):
            code = cv2.COLOR_BGRA2GRAY if img.shape[2] == 4 else cv2.COLOR_BGR2GRAY
            img = cv2.cvtColor( img, code )

        log.debug( "Loaded {} as {}x{} {}".format( path, img.shape[1], img.shape[0], img.dtype ) )
        return cls( img.astype( np.float64 ) )


    def size( self ):
        return ( self.width, self.height )


    def valueAt( self, x, y ):
        if( not (0 <= x < self.width and 0 <= y < self.height) ):
            raise OutOfRange( x, y, self.width, self.height )
        return float( self.data[ y, x ] )


    def rowValues( self, y ):
        """ Whole row as a list of floats """
        if( not (0 <= y < self.height) ):
            raise OutOfRange( 0, y, self.width, self.height )
        return self.data[ y ].astype( np.float64 ).tolist()


    def __repr__( self ):
        return "PixelSource {}x{} {}".format( self.width, self.height, self.data.dtype )


class Threshold( object ):
    """ Default significance test, a pixel is hot if it is over 'level'.
        'inclusive' makes it 'at or over'.
    """

    def __init__( self, level=0.0, inclusive=False ):
        self.level     = level
        self.inclusive = inclusive


    def isSignificant( self, value ):
        if( self.inclusive ):
            return value >= self.level
        return value > self.level


    __call__ = isSignificant


    def __repr__( self ):
        return "Threshold {} {}".format( ">=" if self.inclusive else ">", self.level )
