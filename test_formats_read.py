import struct
import unittest

from msh_io.formats.msh_format import (
    MSHReader, ReaderOptions, read_scene_info, read_materials, read_models,
    DEFAULT_FRAME_END, DEFAULT_FPS,
)
from msh_fixtures import (
    chunk, string_chunk, container, msh_file, minimal_file, scene_info, material, material_list,
    model, geometry, segment, mati, posl, nrml, uv0l, clrl, clrb, ndxt, strp, ndxl, wght, envl, cloth,
    TRIANGLE,
)


class TestSceneInfo(unittest.TestCase):
    def test_fields(self):
        data = msh_file(scene_info('level', frames=(5, 25, 15.0),
                                   bbox=((0.0, 0.5, 0.0, 1.0), (1.0, 2.0, 3.0), (4.0, 5.0, 6.0), 8.0)))
        info = read_scene_info(data)
        self.assertEqual(info.name, 'level')
        self.assertEqual((info.frame_start, info.frame_end, info.fps), (5, 25, 15.0))
        self.assertEqual(info.rotation, (0.0, 0.5, 0.0, 1.0))
        self.assertEqual(info.center, (1.0, 2.0, 3.0))
        self.assertEqual(info.extents, (4.0, 5.0, 6.0))
        self.assertEqual(info.radius, 8.0)

    def test_defaults_when_fields_missing(self):
        data = msh_file(container('SINF', string_chunk('NAME', 'bare')))
        info = read_scene_info(data)
        self.assertEqual(info.name, 'bare')
        self.assertEqual(info.frame_end, DEFAULT_FRAME_END)
        self.assertEqual(info.fps, DEFAULT_FPS)
        self.assertEqual(info.rotation, (0.0, 0.0, 0.0, 1.0))

    def test_found_away_from_usual_offset(self):
        padding = chunk('PADD', b'\x00' * 20)
        data = msh_file(padding, scene_info('moved'))
        self.assertEqual(read_scene_info(data).name, 'moved')

    def test_absent(self):
        self.assertIsNone(read_scene_info(msh_file(material_list())))


class TestMaterials(unittest.TestCase):
    def test_minimal_material(self):
        materials = read_materials(minimal_file())
        self.assertEqual(len(materials), 1)
        mat = materials[0]
        self.assertEqual(mat.name, 'mat')
        self.assertEqual(mat.tx0d, 'tex.tga')
        self.assertIsNone(mat.tx1d)
        self.assertEqual(mat.attributes.render_flag, 'normal')

    def test_colours_and_shininess(self):
        data = msh_file(material_list(material(
            'paint', diffuse=(0.25, 0.5, 0.75, 1.0), specular=(1.0, 0.5, 0.0, 1.0),
            ambient=(0.0, 0.0, 0.25, 1.0), shininess=16.0)))
        mat = read_materials(data)[0]
        self.assertEqual(mat.diffuse_color, (0.25, 0.5, 0.75, 1.0))
        self.assertEqual(mat.specular_color, (1.0, 0.5, 0.0, 1.0))
        self.assertEqual(mat.ambient_color, (0.0, 0.0, 0.25, 1.0))
        self.assertEqual(mat.shininess, 16.0)
        self.assertIsNone(mat.attributes)

    def test_attributes_and_hints(self):
        # flags: glow | double transparent, render type 25 (pulsate)
        data = msh_file(material_list(
            material('a', attributes=(0b00001010, 25, 3, 4)),
            material('b', attributes=(0b10000000, 6, 0, 0)),
            material('c', attributes=(0, 21, 0, 0)),
            material('d', attributes=(0, 12, 0, 0)),
        ))
        a, b, c, d = (m.attributes for m in read_materials(data))
        self.assertEqual((a.flags, a.render_type, a.data0, a.data1), (0b00001010, 25, 3, 4))
        self.assertTrue(a.bit_flags['glow'])
        self.assertTrue(a.bit_flags['double_transparent'])
        self.assertFalse(a.bit_flags['emissive'])
        self.assertTrue(a.is_transparent)
        self.assertTrue(a.is_glowing)
        self.assertTrue(a.is_pulsating)
        self.assertTrue(a.is_double_sided)
        self.assertFalse(a.is_specular)

        self.assertEqual(b.render_flag, 'chrome')
        self.assertTrue(b.is_specular)
        self.assertTrue(b.is_chrome)
        self.assertFalse(b.is_transparent)

        self.assertEqual(c.render_flag, 'ice_reflection')
        self.assertTrue(c.is_deprecated)
        self.assertTrue(d.is_unsupported)
        self.assertFalse(d.is_deprecated)

    def test_textures_normalised_and_unique(self):
        data = msh_file(material_list(
            material('a', textures={'TX0D': 'Body.TGA', 'TX1D': 'body_bump'}),
            material('b', textures={'TX0D': 'body.tga', 'TX3D': 'sky'}),
        ))
        reader = MSHReader(data)
        a, b = reader.read_materials()
        self.assertEqual(a.tx0d, 'body.tga')
        self.assertEqual(a.tx1d, 'body_bump.tga')
        self.assertEqual(b.tx3d, 'sky.tga')
        self.assertEqual(reader.textures, ['body.tga', 'body_bump.tga', 'sky.tga'])

    def test_unknown_sub_chunk_skipped(self):
        extra = [chunk('XTRA', b'\x01\x02\x03\x04')]
        data = msh_file(material_list(material('x', textures={'TX0D': 'tex'}, extra=extra)))
        mat = read_materials(data)[0]
        self.assertEqual(mat.tx0d, 'tex.tga')

    def test_short_list_is_reported(self):
        data = msh_file(material_list(material('only'), count=3))
        reader = MSHReader(data)
        self.assertEqual(len(reader.read_materials()), 1)
        self.assertEqual(len(reader.issues), 1)

    def test_no_material_list(self):
        self.assertEqual(read_materials(msh_file(scene_info())), [])


class TestModels(unittest.TestCase):
    def test_model_fields(self):
        data = msh_file(model('Body', 4, mtyp=1, parent='Root', flags=1,
                              transform=((2.0, 2.0, 2.0), (0.0, 0.0, 0.5, 1.0), (1.0, 2.0, 3.0))))
        m = read_models(data)[0]
        self.assertEqual(m.name, 'Body')
        self.assertEqual(m.lookup_name, 'body')
        self.assertEqual(m.model_type, 1)
        self.assertEqual(m.model_index, 4)
        self.assertEqual(m.parent, 'Root')
        self.assertEqual(m.flags, 1)
        self.assertEqual(m.transform.scale, (2.0, 2.0, 2.0))
        self.assertEqual(m.transform.rotation, (0.0, 0.0, 0.5, 1.0))
        self.assertEqual(m.transform.translation, (1.0, 2.0, 3.0))
        self.assertIsNone(m.geometry)

    def test_optional_fields_absent(self):
        m = read_models(msh_file(model('root', 0)))[0]
        self.assertIsNone(m.parent)
        self.assertIsNone(m.flags)

    def test_segment_attributes(self):
        seg = segment(
            mati(2),
            posl(TRIANGLE),
            nrml([(0.0, 0.0, 1.0)] * 3),
            uv0l([(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)]),
            clrl([(10, 20, 30, 255), (40, 50, 60, 255), (70, 80, 90, 128)]),
            ndxt([0, 1, 2]),
        )
        m = read_models(msh_file(model('mesh', 1, geometry=geometry(seg))))[0]
        self.assertEqual(m.geometry.kind, 'segments')
        s = m.geometry.segments[0]
        self.assertEqual(s.material_index, 2)
        self.assertEqual(s.vertex_count, 3)
        self.assertEqual(s.positions, TRIANGLE)
        self.assertEqual(s.normals[0], (0.0, 0.0, 1.0))
        self.assertEqual(s.uvs[2], (0.0, 1.0))
        self.assertEqual(s.colors[2], (70, 80, 90, 128))
        self.assertIsNone(s.color)
        self.assertIsNone(s.strips)
        self.assertEqual(s.triangle_list(), [0, 1, 2])

    def test_mixed_index_encodings(self):
        square = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0), (0.5, 2.0, 0.0)]
        seg = segment(posl(square), ndxt([0, 1, 2]), strp([0x8000, 0x8001, 2, 3]), ndxl([[0, 1, 2, 3, 4]]))
        s = read_models(msh_file(model('m', 1, geometry=geometry(seg))))[0].geometry.segments[0]
        self.assertEqual(s.triangles, [0, 1, 2])
        self.assertEqual(s.strips, [[0, 1, 2, 3]])
        self.assertEqual(s.polygons, [[0, 1, 2, 3, 4]])
        self.assertEqual(s.triangle_list(), [0, 1, 2] + [0, 1, 2, 1, 3, 2] + [0, 1, 2, 0, 2, 3, 0, 3, 4])

    def test_flat_colour_and_weights(self):
        seg = segment(
            posl(TRIANGLE), clrb((1, 2, 3, 4)),
            wght([[(0, 1.0), (1, 0.0), (0, 0.0), (0, 0.0)],
                  [(1, 0.5), (0, 0.5), (0, 0.0), (0, 0.0)],
                  [(1, 1.0), (0, 0.0), (0, 0.0), (0, 0.0)]]),
        )
        m = read_models(msh_file(model('m', 1, geometry=geometry(seg, envl([3, 7])))))[0]
        s = m.geometry.segments[0]
        self.assertEqual(s.color, (1, 2, 3, 4))
        self.assertTrue(s.has_vertex_colors)
        self.assertEqual(len(s.weights), 3)
        self.assertEqual(s.weights.indices[1], (1, 0, 0, 0))
        self.assertEqual(s.weights.weights[1], (0.5, 0.5, 0.0, 0.0))
        self.assertEqual(m.geometry.envelope, [3, 7])

    def test_cloth(self):
        clth = cloth(texture='Cape', positions=TRIANGLE, uvs=[(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)],
                     triangles=(0, 1, 2), fixed=(0,), fixed_weights=('bone_spine', 'bone_neck'),
                     stretch=[(0, 1)], cross=[(1, 2)], bend=[(0, 2)])
        reader = MSHReader(msh_file(model('cape', 1, geometry=geometry(clth))))
        m = reader.read_models()[0]
        self.assertEqual(m.geometry.kind, 'cloth')
        c = m.geometry.cloth
        self.assertEqual(c.name, 'cape')
        self.assertEqual(c.texture, 'cape.tga')
        self.assertEqual(c.positions, TRIANGLE)
        self.assertEqual(c.triangles, [0, 1, 2])
        self.assertEqual(c.fixed_points, [0])
        self.assertEqual(c.fixed_weights, ['bone_spine', 'bone_neck'])
        self.assertEqual(c.stretch_pairs, [(0, 1)])
        self.assertEqual(c.cross_pairs, [(1, 2)])
        self.assertEqual(c.bend_pairs, [(0, 2)])
        self.assertEqual(reader.textures, ['cape.tga'])

    def test_cloth_without_lists_leaves_them_unset(self):
        clth = container('CLTH', string_chunk('CTEX', 'cape'))
        c = read_models(msh_file(model('cape', 1, geometry=geometry(clth))))[0].geometry.cloth
        self.assertEqual(c.texture, 'cape.tga')
        self.assertIsNone(c.positions)
        self.assertIsNone(c.triangles)
        self.assertIsNone(c.fixed_weights)
        self.assertIsNone(c.stretch_pairs)

    def test_cloth_empty_lists_stay_empty(self):
        c = read_models(msh_file(model('cape', 1, geometry=geometry(cloth()))))[0].geometry.cloth
        self.assertEqual(c.positions, [])
        self.assertEqual(c.stretch_pairs, [])

    def test_last_cloth_wins_and_gets_name_after_geom(self):
        data = msh_file(model('flag', 1, name_last=True,
                              geometry=geometry(cloth(texture='first'), cloth(texture='second'))))
        c = read_models(data)[0].geometry.cloth
        self.assertEqual(c.texture, 'second.tga')
        self.assertEqual(c.name, 'flag')

    def test_unknown_model_chunk_skipped(self):
        data = msh_file(container('MODL', string_chunk('NAME', 'odd'), chunk('SWCI', b'\x00' * 16),
                                  chunk('MNDX', struct.pack('<I', 9))))
        m = read_models(data)[0]
        self.assertEqual((m.name, m.model_index), ('odd', 9))

    def test_truncated_positions(self):
        data = msh_file(model('m', 1, geometry=geometry(segment(mati(0), posl(TRIANGLE)))))
        reader = MSHReader(data[:-6])
        s = reader.read_models()[0].geometry.segments[0]
        self.assertEqual(s.vertex_count, 3)
        self.assertEqual(s.positions, TRIANGLE[:2])
        self.assertTrue(any('Truncated' in issue for issue in reader.issues))

    def test_debug_option_does_not_change_result(self):
        data = minimal_file()
        quiet = MSHReader(data, ReaderOptions(debug=False)).read_models()
        loud = MSHReader(data, ReaderOptions(debug=True)).read_models()
        self.assertEqual(quiet, loud)


if __name__ == '__main__':
    unittest.main()
