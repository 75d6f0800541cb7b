"""
This is the main program of SNPRecal. It's the toppest layer of
SNPRecal's tool sets.
"""
import argparse
import sys
import time

from snprecal.errors import ConfigurationError
from snprecal.log import logger, set_verbosity


def parser_commandline_args(argv=None):
    desc = "SNPRecal: Recalibrate the quality scores of SNV calls with a Gaussian " \
           "mixture model of the variant annotations."

    cmdparse = argparse.ArgumentParser(description=desc)
    commands = cmdparse.add_subparsers(dest="command", title="SNPRecal Commands")
    commands.required = True

    # VQSR commands
    vqsr_cmd = commands.add_parser('VQSR', help='Variants Recalibrator')
    vqsr_cmd.add_argument('-I', '--input', dest='vcfInfile', metavar='VCF', required=True,
                          help='Input VCF file. Bgzip and tabix index it to collect the variants '
                               'with more than one process.')
    vqsr_cmd.add_argument('-K', '--known-sites', dest='knownSites', metavar='VCF', required=True,
                          help='VCF of known variant sites, e.g. dbSNP. Required.')
    vqsr_cmd.add_argument('-an', '--use-annotation', dest='annotations', metavar='NAME',
                          action='append', default=[], required=True,
                          help='The names of the annotations to use for the model. QUAL is the '
                               'QUAL column, others are INFO keys. This argument could be '
                               'specified more than once.')
    vqsr_cmd.add_argument('-o', '--output-prefix', dest='outputPrefix', metavar='PREFIX',
                          default='optimizer',
                          help='The prefix of the output VCF and the optimization curve data. '
                               '[optimizer]')
    vqsr_cmd.add_argument('--output-vcf', dest='outputVcf', metavar='VCF',
                          help='Output VCF file, bgzipped and tabix indexed if it ends with .gz. '
                               '[PREFIX.vcf]')
    vqsr_cmd.add_argument('--cluster-file', dest='clusterFile', metavar='FILE',
                          help='Output file of the fitted Gaussians, the population statistics '
                               'and the allele count prior. [PREFIX.cluster]')
    vqsr_cmd.add_argument('--input-cluster-file', dest='inputClusterFile', metavar='FILE',
                          help='Score the variants with the model in this cluster file '
                               'instead of training a new one.')

    vqsr_cmd.add_argument('--target-titv', dest='targetTiTv', type=float, default=2.1,
                          help='The expected Ti/Tv ratio to display on optimization curve output '
                               'figures. (~2.1 for whole genome experiments) [2.1]')
    vqsr_cmd.add_argument('--backoff', dest='backoffFactor', type=float, default=1.0,
                          help='The Gaussian back off factor, used to prevent overfitting by '
                               'spreading out the Gaussians. [1.0]')
    vqsr_cmd.add_argument('-dV', '--desired-num-variants', dest='desiredNumVariants', type=int,
                          default=0,
                          help='The desired number of variants to keep in a theoretically '
                               'filtered set. 0 reports the whole curve. [0]')
    vqsr_cmd.add_argument('--qual-step', dest='qualStep', type=float, default=0.0,
                          help='Step of the quality threshold sweep. 0 uses every distinct '
                               'quality. [0]')
    vqsr_cmd.add_argument('--ignore-all-filters', dest='ignoreAllFilters', action='store_true',
                          help='Use variants even if the FILTER column is marked in the VCF.')
    vqsr_cmd.add_argument('--ignore-filter', dest='ignoreFilters', metavar='FILTER',
                          action='append', default=[],
                          help='Use variants even if this filter name is marked in the VCF. '
                               'This argument could be specified more than once.')
    vqsr_cmd.add_argument('--known-prior', dest='knownPrior', type=int, default=9,
                          help='A prior on the quality of known variants, a phred scaled '
                               'probability of being true. [9]')
    vqsr_cmd.add_argument('--novel-prior', dest='novelPrior', type=int, default=2,
                          help='A prior on the quality of novel variants, a phred scaled '
                               'probability of being true. [2]')
    vqsr_cmd.add_argument('--quality-scale-factor', dest='qualityScaleFactor', type=float,
                          default=50.0,
                          help='Multiply all final quality scores by this value. [50.0]')

    vqsr_cmd.add_argument('--model', dest='optimizationModel', default='GAUSSIAN_MIXTURE_MODEL',
                          help='Optimization model, only GAUSSIAN_MIXTURE_MODEL is implemented. '
                               '[GAUSSIAN_MIXTURE_MODEL]')
    vqsr_cmd.add_argument('-G', '--max-gaussians', dest='maxGaussians', type=int, default=4,
                          help='The number of Gaussians in the mixture model. [4]')
    vqsr_cmd.add_argument('--covariance-type', dest='covarianceType', default='full',
                          choices=['full', 'diag'], help='Covariance of the Gaussians. [full]')
    vqsr_cmd.add_argument('--tol', dest='tol', type=float, default=2e-3,
                          help='EM stops when the log likelihood improves by less than this. '
                               '[0.002]')
    vqsr_cmd.add_argument('--max-iter', dest='maxIter', type=int, default=150,
                          help='The maximum number of EM iterations. [150]')
    vqsr_cmd.add_argument('--seed', dest='randomSeed', type=int, default=0,
                          help='Random seed of the model initialization. [0]')

    vqsr_cmd.add_argument('--path-to-Rscript', dest='rscript', metavar='Rscript',
                          help='Rscript used to plot the optimization curve. Skip plotting '
                               'if not set.')
    vqsr_cmd.add_argument('--path-to-resources', dest='resources', default='R/',
                          help='Path to the folder holding plot_OptimizationCurve.R. [R/]')
    vqsr_cmd.add_argument('--nCPU', dest='nCPU', metavar='INT', type=int, default=1,
                          help='Number of processer to use. [1]')
    vqsr_cmd.add_argument("--verbosity", dest="verbosity", action='store', type=int, default=1,
                          help="Level of logging(0,2). [1]")

    return cmdparse.parse_args(argv)


def vqsr(args):
    from snprecal.recal.executor import VariantRecalibratorRunner
    from snprecal.recal.vqsr.variant_recalibrator_argument_collection import \
        VariantRecalibratorArgumentCollection

    vrac = VariantRecalibratorArgumentCollection(**{k: v for k, v in vars(args).items()
                                                    if k not in ('command', 'verbosity')})
    try:
        runner = VariantRecalibratorRunner(vrac)
        runner.run()
    except ConfigurationError as e:
        logger.error(str(e))
        return False

    return True


def main(argv=None):
    start_time = time.time()
    runner = {
        'VQSR': vqsr,
    }

    args = parser_commandline_args(argv)
    set_verbosity(args.verbosity)

    logger.info("... %s starting ..." % args.command)
    is_success = runner[args.command](args)

    elapsed_time = time.time() - start_time
    if is_success:
        logger.info('%s done, %d seconds elapsed.' % (args.command, elapsed_time))
    else:
        logger.error("Catch some exception, so \"%s\" is not done, %d seconds elapsed" % (
            args.command, elapsed_time))
        sys.exit(1)

    return


if __name__ == '__main__':
    main()
