"""
=========================================
Variant quality score recalibrator (VQSR)
=========================================

Train on the complete collected population, score every variant, then
write the recalibrated VCF, the optimization curve table and (optionally)
call the Rscript that plots it.
"""
import os
import subprocess
import time
from collections import defaultdict, deque

from . import cluster_file
from . import variant_data_manager as vdm
from . import variant_recalibrator as vror
from . import variant_recalibrator_engine as vre
from .optimization_curve import OptimizationCurveGenerator, WriteCurveData
from .. import utils
from ..vcfutils import Header, Context
from ...errors import ConfigurationError, ExternalToolError
from ...log import logger

PLOT_SCRIPT = 'plot_OptimizationCurve.R'


def _WriteHeader(O, hInfo):

    hInfo.add('INFO', vre.ORIGINAL_QUAL_KEY, 1, 'Float',
              'The original variant quality score')
    hInfo.record('##source=SNPRecal')
    O.write('\n'.join(hInfo.lines()) + '\n')


def OutputRecalibratedVCF(vrac, data):
    """
    Second pass over the input: scored records get the new QUAL, INFO/OQ
    and FILTER=PASS, the others are written out unchanged.
    """
    pending = defaultdict(deque)
    for d in data:
        pending[d.key].append(d)

    hInfo = Header()
    plainVcf = utils.output_vcf_name(vrac.outputVcf)

    logger.info('Outputting %s %s ...' % (vrac.outputVcf, time.asctime()))
    n, scored = 0, 0
    with utils.Open(vrac.vcfInfile, 'r') as I, open(plainVcf, 'w') as O:
        for line in I:
            if line.startswith('#'):
                hInfo.record(line.strip())
                continue

            if n == 0:
                _WriteHeader(O, hInfo)

            n += 1
            if n % 100000 == 0:
                logger.info('** Output lines %d %s' % (n, time.asctime()))

            context = Context.from_line(line)
            key = '%s:%d:%s:%s' % (context.chrom, context.pos, context.ref.upper(),
                                   ','.join(context.alt).upper())
            # A record owns a datum only if the collection pass could build one from it
            if pending.get(key) and vdm.IsEligible(context,
                                                   vrac.IGNORE_ALL_INPUT_FILTERS,
                                                   vrac.IGNORE_INPUT_FILTERS) \
                    and vdm.ExtractVariantDatum(context, vrac.ANNOTATIONS, ())[0] is not None:
                d = pending[key].popleft()
                O.write(vre.RecalibrateContext(context, d).to_line() + '\n')
                scored += 1
            else:
                # not a SNP or is filtered so just dump it out to the VCF file
                O.write(line.rstrip('\n') + '\n')

        if n == 0:
            _WriteHeader(O, hInfo)

    if scored != len(data):
        raise ValueError('[BUG] %d variants were scored but only %d of them '
                         'were found again in %s' % (len(data), scored, vrac.vcfInfile))

    outfile = utils.compress_and_index(plainVcf, vrac.outputVcf)
    logger.info('Finish outputting %d lines (%d recalibrated) to %s. %s' %
                (n, scored, outfile, time.asctime()))

    return outfile


def PlotOptimizationCurve(vrac):
    """Run the external Rscript on the curve table."""
    if not vrac.PATH_TO_RSCRIPT:
        logger.info('No Rscript given, skip plotting the optimization curve.')
        return None

    cmd = [vrac.PATH_TO_RSCRIPT,
           os.path.join(vrac.PATH_TO_RESOURCES, PLOT_SCRIPT),
           vrac.curveDataFile,
           str(vrac.TARGET_TITV)]

    # Print out the command line to make it clear to the user what is being
    # executed and how one might modify it
    logger.info(' '.join(cmd))
    try:
        subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except (OSError, subprocess.CalledProcessError) as e:
        raise ExternalToolError('[ERROR] Unable to execute RScript command: %s. %s' %
                                (' '.join(cmd), e))

    return cmd


def Summary(data):

    good, tot = {}, float(len(data))
    for d in data:
        for q in [0, 10, 20, 30, 40, 50, 100, 200, 500]:
            if d.qual >= q:
                good[q] = good.get(q, 0.0) + 1.0

    numKnown = sum(1 for d in data if d.isKnown)
    logger.info('[Summary] %d recalibrated variants, %d known and %d novel.' %
                (tot, numKnown, tot - numKnown))
    for k, v in sorted(good.items(), key=lambda k: k[0]):
        logger.info('  ** Variant quality >= %d: %d\t%0.2f' % (k, v, v * 100 / tot))


def LoadModel(vrac, dataSet):
    """Score with the model of a previous run instead of training one."""
    keys, model = cluster_file.ReadClusterFile(vrac.INPUT_CLUSTER_FILE)
    if keys != vrac.ANNOTATIONS:
        raise ConfigurationError('[ERROR] The cluster file %s is trained with the '
                                 'annotations [%s] but this run uses [%s].' %
                                 (vrac.INPUT_CLUSTER_FILE, ','.join(keys),
                                  ','.join(vrac.ANNOTATIONS)))

    dataManager = vdm.VariantDataManager(keys, dataSet)
    return model, dataManager.data


def main(vrac, dataSet):
    """
    ``dataSet`` is the complete list of ``VariantDatum`` collected from
    ``vrac.vcfInfile``. Return the ``RecalibrationModel``, trained or read
    from ``vrac.INPUT_CLUSTER_FILE``.
    """
    # Training model. Nothing is written before this is done.
    if vrac.INPUT_CLUSTER_FILE:
        model, data = LoadModel(vrac, dataSet)
    else:
        vr = vror.VariantRecalibrator(vrac)
        model = vr.OnTraversalDone(dataSet)
        data = vr.dataManager.data
        cluster_file.WriteClusterFile(model, vrac.ANNOTATIONS, vrac.clusterFile)

    # Calculate the quality for all dataSet
    vre.VariantRecalibratorEngine(model, vrac.QUALITY_SCALE_FACTOR).EvaluateData(data)

    OutputRecalibratedVCF(vrac, data)

    rows = OptimizationCurveGenerator(data, vrac.QUAL_STEP).Generate(vrac.DESIRED_NUM_VARIANTS)
    WriteCurveData(rows, vrac.curveDataFile)
    logger.info('Optimization curve data with %d rows written to %s' %
                (len(rows), vrac.curveDataFile))

    Summary(data)

    try:
        PlotOptimizationCurve(vrac)
    except ExternalToolError as e:
        logger.error('[ExternalToolFailure] %s The recalibrated VCF and the curve '
                     'data are complete.' % e)

    return model
