"""
Find the objects in an image and list them.

    python findObjects.py image.png -t 155 -m 4 -o overlay.png
"""
import argparse
import logging

import cv2
import numpy as np

import vision
from pixelSource import PixelSource

log = logging.getLogger( __name__ )


def drawDets( image, det_list, col=(0,0,200) ):
    i_h, i_w, _ = image.shape
    for x, y, r, s in det_list:
        x_, y_, r_ = map( int, (x, y, r) )
        c_col = (0,0,200) if s < 0.66 else (200,0,0)
        cv2.circle( image, (x_,y_), max(1,r_), c_col, 1, cv2.LINE_8, 0 )
        cv2.line( image, (max(0,x_-2),y_), (min(i_w,x_+2),y_), col, 1 )
        cv2.line( image, (x_,max(0,y_-2)), (x_,min(i_h,y_+2)), col, 1 )


def describe( idx, obj, weight_bins=True ):
    x, y = obj.centroid( weight_bins )
    return "{:>4} {:>6} px  BB: {}-{}, {}-{}  values: {:g}-{:g}  sum: {:g}  centroid: {:.3f}, {:.3f}".format(
        idx, len( obj ), obj.xmin, obj.ymin, obj.xmax, obj.ymax,
        obj.value_min, obj.value_max, obj.value_sum, x, y
    )


def writeOverlay( path, source, objects, weight_bins=True ):
    grey = np.clip( source.data, 0, 255 ).astype( np.uint8 )
    retort = cv2.cvtColor( grey, cv2.COLOR_GRAY2BGR )
    drawDets( retort, vision.objs2detsMoments( objects, weight_bins ) )
    if( not cv2.imwrite( str( path ), retort ) ):
        raise IOError( "Failed to write overlay: {}".format( path ) )
    log.info( "Wrote overlay {}".format( path ) )


def main( argv=None ):
    parser = argparse.ArgumentParser( description="One pass object detection" )
    parser.add_argument( "image", help="Image to scan, anything OpenCV can read" )
    parser.add_argument( "-t", "--threshold",  action="store",      dest="threshold",  default=vision.DEFAULT_THRESHOLD,  type=float, help="Pixels over this are significant" )
    parser.add_argument( "-m", "--min-pixels", action="store",      dest="min_pixels", default=vision.DEFAULT_MIN_PIXELS, type=int,   help="Drop objects smaller than this" )
    parser.add_argument( "-i", "--inclusive",  action="store_true", dest="inclusive",  help="Pixels AT the threshold are significant too" )
    parser.add_argument( "-u", "--unweighted", action="store_true", dest="unweighted", help="Don't weight centroids by pixel value" )
    parser.add_argument( "-o", "--overlay",    action="store",      dest="overlay",    default=None, help="Write an image with the detections drawn on" )
    parser.add_argument( "-v", "--verbose",    action="store_true", dest="verbose",    help="Debug logging" )

    args = parser.parse_args( argv )

    logging.basicConfig( level=logging.DEBUG if args.verbose else logging.INFO,
                         format="%(asctime)s %(name)s %(levelname)s: %(message)s" )

    try:
        source = PixelSource.fromImageFile( args.image )
    except IOError as e:
        print( e )
        return 1

    tracker = vision.SegmentTracker( source, min_pixels=args.min_pixels )
    tracker.setThreshold( args.threshold, args.inclusive )
    objects = tracker.run()

    weight_bins = not args.unweighted
    for idx, obj in enumerate( objects ):
        print( describe( idx, obj, weight_bins ) )

    print( "{} objects in {}x{} image, {} rejected under {} px".format(
        len( objects ), source.width, source.height, tracker.objects.rejected, args.min_pixels ) )

    if( args.overlay ):
        writeOverlay( args.overlay, source, objects, weight_bins )

    return 0


if( __name__ == "__main__" ):
    raise SystemExit( main() )
