"""
Run one SAS pairing between two in-process parties and print the
initiator's pin and the responder's pin, one per line.
"""
from sas.commitment import SCHEMES
from sas.errors import Error
from sas.execsas import run_sas
from sas.pin import PIN_LENGTH
import argparse
import logging
import sys

log = logging.getLogger('sas')

def build_arg_parser():
    p = argparse.ArgumentParser(
        prog='sas-pair',
        description='Short authentication string pairing between two in-process parties.'
    )
    p.add_argument(
        '--initiator-msg',
        default='AlicePublicKey',
        help='Value the initiator authenticates. Default: AlicePublicKey',
    )
    p.add_argument(
        '--responder-msg',
        default='BobPublicKey',
        help='Value the responder authenticates. Default: BobPublicKey',
    )
    p.add_argument(
        '--scheme',
        choices=sorted(SCHEMES),
        default='ideal',
        help='Commitment scheme. Default: ideal',
    )
    p.add_argument(
        '--pin-length',
        type=int,
        default=PIN_LENGTH,
        help='Digits in the pin. Default: {}'.format(PIN_LENGTH),
    )
    p.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='More logging on stderr, repeat for debug.',
    )
    return p

def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    args = build_arg_parser().parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    try:
        initiator, responder = run_sas(
            args.initiator_msg,
            args.responder_msg,
            scheme=SCHEMES[args.scheme],
            pin_length=args.pin_length,
        )
    except (Error, ValueError) as e:
        log.error('pairing failed: %s', e)
        return 1

    print(initiator)
    print(responder)
    return 0

if __name__ == '__main__':
    sys.exit(main())
