"""Test writing and reading back the fitted model
"""
import os

import numpy as np
import pytest

from snprecal.errors import ConfigurationError
from snprecal.recal import executor, utils
from snprecal.recal.vqsr.cluster_file import ReadClusterFile, WriteClusterFile
from snprecal.recal.vqsr.variant_recalibrator_argument_collection import \
    VariantRecalibratorArgumentCollection


def make_vrac(vcf, known, prefix, **kwargs):
    kwargs.setdefault('annotations', ['QD', 'FS'])
    kwargs.setdefault('maxGaussians', 2)
    return VariantRecalibratorArgumentCollection(vcfInfile=vcf, knownSites=known,
                                                 outputPrefix=str(prefix), **kwargs)


def data_lines(fileName):
    with utils.Open(fileName, 'r') as I:
        return [l for l in I.read().splitlines() if not l.startswith('#')]


def test_cluster_file_is_written(callset, tmp_path):
    vcf, known, _ = callset
    vrac = make_vrac(vcf, known, tmp_path / 'out')
    executor.VariantRecalibratorRunner(vrac).run()

    assert vrac.clusterFile == str(tmp_path / 'out') + '.cluster'
    with open(vrac.clusterFile) as I:
        lines = I.read().splitlines()

    assert lines[0] == '@!MODEL,GAUSSIAN_MIXTURE_MODEL,2,2,full'
    assert [l.split(',')[1] for l in lines if l.startswith('@!ANNOTATION')] == ['QD', 'FS']
    assert len([l for l in lines if l.startswith('@!CLUSTER')]) == 2
    assert '@!PRIOR,9.0,2.0' in lines
    assert any(l.startswith('@!ALLELECOUNT,1,') for l in lines)

    vrac = make_vrac(vcf, known, tmp_path / 'other', clusterFile=str(tmp_path / 'my.cluster'))
    executor.VariantRecalibratorRunner(vrac).run()
    assert os.path.exists(str(tmp_path / 'my.cluster'))


def test_model_read_back_evaluates_the_same(callset, tmp_path):
    vcf, known, _ = callset
    vrac = make_vrac(vcf, known, tmp_path / 'out')
    model = executor.VariantRecalibratorRunner(vrac).run()

    keys, loaded = ReadClusterFile(vrac.clusterFile)
    assert keys == ['QD', 'FS']
    assert loaded.name == model.name

    for v in ([20.0, 2.0], [6.0, 20.0], [13.0, 9.5], [-5.0, 60.0]):
        assert loaded.gmm.Evaluate(v) == model.gmm.Evaluate(v)

    for c in sorted(model.prior.alleleCountTable):
        assert loaded.prior.AlleleCountPrior(c) == model.prior.AlleleCountPrior(c)
    assert loaded.prior.AlleleCountPrior(1000) == pytest.approx(model.prior.AlleleCountPrior(1000))
    assert loaded.prior.KnownPrior(True) == model.prior.KnownPrior(True)
    assert loaded.prior.KnownPrior(False) == model.prior.KnownPrior(False)

    # Writing the model read back gives the same file
    again = WriteClusterFile(loaded, keys, str(tmp_path / 'again.cluster'))
    with open(vrac.clusterFile) as a, open(again) as b:
        assert a.read() == b.read()


def test_score_with_input_cluster_file(callset, tmp_path):
    vcf, known, _ = callset
    trained = make_vrac(vcf, known, tmp_path / 'trained')
    executor.VariantRecalibratorRunner(trained).run()

    scored = make_vrac(vcf, known, tmp_path / 'scored', maxGaussians=4,
                       inputClusterFile=trained.clusterFile)
    model = executor.VariantRecalibratorRunner(scored).run()

    assert model.gmm.nGaussians == 2
    assert not os.path.exists(scored.clusterFile)
    assert data_lines(scored.outputVcf) == data_lines(trained.outputVcf)


def test_invalid_cluster_files(callset, tmp_path):
    vcf, known, _ = callset
    trained = make_vrac(vcf, known, tmp_path / 'trained')
    executor.VariantRecalibratorRunner(trained).run()

    # Other annotations than the ones the model was trained with
    vrac = make_vrac(vcf, known, tmp_path / 'bad', annotations=['FS', 'QD'],
                     inputClusterFile=trained.clusterFile)
    with pytest.raises(ConfigurationError):
        executor.VariantRecalibratorRunner(vrac).run()
    assert not os.path.exists(vrac.outputVcf)

    with pytest.raises(ConfigurationError):
        executor.VariantRecalibratorRunner(
            make_vrac(vcf, known, tmp_path / 'bad',
                      inputClusterFile=str(tmp_path / 'missing.cluster')))

    with open(trained.clusterFile) as I:
        lines = I.read().splitlines()

    truncated = str(tmp_path / 'truncated.cluster')
    with open(truncated, 'w') as O:
        O.write('\n'.join(l for l in lines if not l.startswith('@!CLUSTER')) + '\n')
    with pytest.raises(ConfigurationError):
        ReadClusterFile(truncated)

    short = str(tmp_path / 'short.cluster')
    with open(short, 'w') as O:
        O.write('\n'.join(l.rsplit(',', 1)[0] if l.startswith('@!CLUSTER') else l
                          for l in lines) + '\n')
    with pytest.raises(ConfigurationError):
        ReadClusterFile(short)

    unknown = str(tmp_path / 'unknown.cluster')
    with open(unknown, 'w') as O:
        O.write('\n'.join(lines + ['@!SOMETHING,1']) + '\n')
    with pytest.raises(ConfigurationError):
        ReadClusterFile(unknown)

    assert np.isfinite(ReadClusterFile(trained.clusterFile)[1].gmm.Evaluate([10.0, 5.0]))
