import numpy as np
import pytest

import rfnetworks as rn
from rfnetworks.errors import TouchstoneWarning
from rfnetworks.io.general import collection_2_dataframe, read_touchstone, write_touchstone

TWO_PORT = """\
! 2-port S-parameter file, three frequency points
# GHz S RI R 50.0
1.0000 0.3926 -0.1211 -0.0003 -0.0021 -0.0005 -0.0023 0.3926 -0.1211
2.0000 0.3517 -0.3054 -0.0096 -0.0298 -0.0098 -0.0300 0.3517 -0.3054
10.000 0.3419 0.3336 -0.0134 0.0379 -0.0136 0.0381 0.3420 0.3337
"""


@pytest.fixture
def s2p(tmp_path):
    path = tmp_path / 'ntwk.s2p'
    path.write_text(TWO_PORT)
    return path


def test_read_write_file(s2p, tmp_path):
    ts = read_touchstone(s2p)
    out = tmp_path / 'copy.s2p'
    write_touchstone(ts, out)
    copy = read_touchstone(out)
    assert copy.keywords.version == '1.0'
    assert copy.options == ts.options
    for (f1, m1), (f2, m2) in zip(ts.network_parameters, copy.network_parameters):
        assert f1 == f2
        assert m1.allclose(m2)


def test_ts_extension_selects_version_2(s2p, tmp_path):
    ts = rn.Touchstone.read(s2p)
    out = tmp_path / 'copy.ts'
    ts.write(out)
    text = out.read_text()
    assert text.startswith('! 2-port')
    assert '[Version] 2.0' in text
    assert text.rstrip().endswith('[End]')
    assert rn.Touchstone.read(out).keywords.version == '2.0'


def test_extension_mismatch_warning(tmp_path):
    path = tmp_path / 'ntwk.s3p'
    path.write_text(TWO_PORT)
    with pytest.warns(TouchstoneWarning, match='3 ports'):
        ts = read_touchstone(path)
    assert ts.nports == 2


def test_str_is_touchstone_text(s2p):
    ts = rn.Touchstone.read(s2p)
    assert str(ts) == ts.to_string()
    assert '# GHz S RI R 50' in str(ts).splitlines()


def test_collection_2_dataframe(s2p):
    c = rn.Touchstone.read(s2p).network_parameters
    df = collection_2_dataframe(c, attrs=['s_db', 's_deg'])
    assert list(df.columns) == ['s_db 11', 's_db 12', 's_db 21', 's_db 22',
                                's_deg 11', 's_deg 12', 's_deg 21', 's_deg 22']
    assert list(df.index) == [1e9, 2e9, 10e9]
    assert df['s_db 21'].iloc[0] == pytest.approx(rn.complex_2_db(complex(-0.0003, -0.0021)))
    assert df['s_deg 12'].iloc[1] == pytest.approx(rn.complex_2_degree(complex(-0.0098, -0.0300)))


def test_collection_2_dataframe_ports():
    c = rn.NetworkParametersCollection(2, data=[(1e9, rn.NetworkParametersMatrix([[0.5, 0.1j], [0.1j, 0.5]]))])
    df = collection_2_dataframe(c, attrs=['s_re', 's_im'], ports=[(2, 1)], port_sep='_')
    assert list(df.columns) == ['s_re 2_1', 's_im 2_1']
    assert df['s_im 2_1'].iloc[0] == pytest.approx(0.1)

    big = rn.NetworkParametersCollection(10, data=[(1e9, rn.NetworkParametersMatrix(np.eye(10)))])
    df = collection_2_dataframe(big, attrs=['s_mag'], ports=[(10, 1)])
    assert list(df.columns) == ['s_mag 10_1']


def test_collection_2_dataframe_unknown_attr(s2p):
    c = rn.Touchstone.read(s2p).network_parameters
    with pytest.raises(ValueError):
        collection_2_dataframe(c, attrs=['z_re'])
